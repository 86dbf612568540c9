"""Relay of provider responses into the event store."""

import asyncio
import logging

from streamtoevents.exceptions import AlreadyRunningError, RelayError


logger = logging.getLogger(__name__)


class ResponseRelay(object):
    """Writes every response of a provider stream to the event store.

    Responses are translated by the streaming mode and written one at a
    time, in the order the provider sent them. The relay runs as its own
    task; an error ends that task and is only logged.

    :param handle: The started provider stream.
    :type handle: transcriber.StreamingSessionHandle
    :param mode: Mode used to translate provider events.
    :type mode: modes.StreamingMode
    :param event_store: Store segments are written to.
    :param call_id: Conversation id of the call.
    :type call_id: str
    """
    def __init__(self, handle, mode, event_store, call_id):
        self._handle = handle
        self._mode = mode
        self._event_store = event_store
        self._call_id = call_id
        self.task = None
        self.segments = 0
        self.error = None

    @property
    def running(self):
        return self.task is not None and not self.task.done()

    def start(self):
        """Start relaying in a detached task and return the task."""
        if self.task is not None:
            raise AlreadyRunningError()
        self.task = asyncio.ensure_future(self._run())
        return self.task

    async def drain(self, timeout):
        """Wait up to timeout seconds for the relay to finish.

        The relay keeps running if it has not finished in time.

        :returns: True if the relay has finished.
        """
        if not self.running:
            return True
        done, _ = await asyncio.wait((self.task,), timeout=timeout)
        return bool(done)

    async def aclose(self):
        """Release the provider stream the relay reads from."""
        await self._handle.aclose()

    async def relay(self):
        async for event in self._handle.events:
            sink_event = self._mode.to_sink_event(event, self._call_id,
                                                  self._handle.session_id)
            if sink_event is None:
                continue
            await self._event_store.write(sink_event)
            self.segments += 1

    async def _run(self):
        extra = {'call_id': self._call_id,
                 'transaction_id': self._handle.session_id}
        try:
            await self.relay()
        except Exception as e:
            self.error = RelayError(self._call_id, e)
            extra['segments'] = self.segments
            logger.exception('Error processing transcript results stream',
                             extra=extra)
            logger.warning('Provider stream left open until the call closes',
                           extra=extra)
            return
        extra['segments'] = self.segments
        logger.info('Transcript results stream ended', extra=extra)
