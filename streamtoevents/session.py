"""Call sessions

A :class:`Session` represents one call. The capture side feeds it audio
frames with :func:`Session.emit_audio` and drives its lifetime with
:func:`Session.open` and :func:`Session.close`. Components which want to
follow the call register an open handler, read frames with
:func:`Session.frames` and return a close handler.
"""

import asyncio
import collections
import logging
import uuid

from streamtoevents import utils


logger = logging.getLogger(__name__)


AUDIO_EVENT = 'audio'


SelectedMedia = collections.namedtuple('SelectedMedia', ['channels', 'rate'])
"""Media negotiated for a call.

:param channels: Channel names, e.g. ``('external', 'internal')``.
:type channels: tuple
:param rate: Sampling frequency.
:type rate: int
"""

Participant = collections.namedtuple('Participant', ['ani', 'dnis'])
"""Call addressing: originating (ani) and dialed (dnis) numbers."""

OpenParameters = collections.namedtuple('OpenParameters',
                                        ['conversation_id', 'participant'])


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Adds the session fields to records, keeping any other extra."""
    def process(self, msg, kwargs):
        kwargs['extra'] = dict(self.extra, **kwargs.get('extra', {}))
        return msg, kwargs


class FrameSubscription(object):
    """Async iterator over the frames a session emits after subscribing.

    Iteration ends once the session is closed and every frame emitted
    before the close has been returned.
    """
    def __init__(self, session):
        self._session = session
        self._queue = asyncio.Queue()
        self._closed = False

    def put(self, frame):
        self._queue.put_nowait(frame)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._closed:
            raise StopAsyncIteration
        try:
            return await utils.interruptable_get(self._queue,
                                                 self._session.closed)
        except utils.InterruptError:
            await self.aclose()
            raise StopAsyncIteration

    async def aclose(self):
        """Stop receiving frames."""
        self._closed = True
        self._session.unsubscribe(self)


class Session(object):
    """One call, from open to close.

    :param session_id: Identifier used in log records.
    :type session_id: str
    """
    def __init__(self, session_id=None):
        self.id = session_id or str(uuid.uuid4())
        self.logger = SessionLoggerAdapter(logger, {'session_id': self.id})
        self.closed = asyncio.Event()
        self._open_handlers = []
        self._close_handlers = []
        self._subscriptions = []

    def add_open_handler(self, handler):
        """Register a coroutine function called when the call opens.

        It is called as ``handler(session, selected_media, open_params)``
        and may return a coroutine function to be called on close.
        """
        self._open_handlers.append(handler)

    def frames(self, event=AUDIO_EVENT):
        """Subscribe to the audio frames of this session.

        :rtype: FrameSubscription
        """
        if event != AUDIO_EVENT:
            raise ValueError('Unknown session event: %s' % event)
        subscription = FrameSubscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def emit_audio(self, frame):
        for subscription in list(self._subscriptions):
            subscription.put(frame)

    async def open(self, selected_media, open_params):
        self.logger = SessionLoggerAdapter(logger, {
            'session_id': self.id,
            'conversation_id': open_params.conversation_id,
        })
        for handler in self._open_handlers:
            try:
                close_handler = await handler(self, selected_media,
                                              open_params)
            except Exception:
                self.logger.exception('Open handler failed')
                continue
            if close_handler is not None:
                self._close_handlers.append(close_handler)

    async def close(self):
        """End the audio stream and run the registered close handlers."""
        if self.closed.is_set():
            return
        self.closed.set()
        for handler in self._close_handlers:
            try:
                await handler()
            except Exception:
                self.logger.exception('Close handler failed')
        self._close_handlers = []
