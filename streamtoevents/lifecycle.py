"""Call lifecycle bracketing

:func:`add_stream_to_sink` hooks a :class:`session.Session` up to a
transcription provider and an event store. For every call a
:class:`CallLifecycle` writes the call START event, starts streaming, runs
a :class:`relay.ResponseRelay` and, when the session closes, writes the
END_TRANSCRIPT and END events.

Failures never propagate into the session:

* If the START event cannot be written nothing else is written for the
  call.
* If the provider handshake fails no transcript status or segment is
  written, but END is still written on close so the call is closed for
  downstream consumers.
* END_TRANSCRIPT and END failures are logged only.
"""

import enum

from streamtoevents import events
from streamtoevents import relay
from streamtoevents import stream
from streamtoevents import transcriber
from streamtoevents.exceptions import BracketError, SetupError


class CallState(enum.Enum):
    IDLE = 'IDLE'
    STREAMING_STARTED = 'STREAMING_STARTED'
    STREAMING_ACTIVE = 'STREAMING_ACTIVE'
    CLOSED = 'CLOSED'


class CallLifecycle(object):
    """Lifecycle of one call's streaming leg.

    :param session: Session of the call.
    :type session: session.Session
    :param selected_media: Media selected for the call.
    :param open_params: Conversation id and participant of the call.
    :param config: Relay configuration.
    :param provider: Transcription provider client.
    :param event_store: Store lifecycle events and segments are written to.
    :param mode: Streaming mode, selected from config when not given.
    """
    def __init__(self, session, selected_media, open_params, config,
                 provider, event_store, mode=None):
        self.state = CallState.IDLE
        self.call_id = open_params.conversation_id
        self.transaction_id = None
        self.relay = None
        self.setup_error = None
        self._session = session
        self._media = selected_media
        self._participant = open_params.participant
        self._config = config
        self._event_store = event_store
        self._controller = transcriber.StreamingController(
            self.call_id, config, provider, event_store, mode
        )

    @property
    def mode(self):
        return self._controller.mode

    def _call_event(self, status):
        participant = self._participant
        return events.CallEvent(
            call_id=self.call_id,
            event_status=status,
            from_number=participant.ani if participant else None,
            to_number=participant.dnis if participant else None,
        )

    async def _write_bracket(self, event):
        try:
            await self._event_store.write(event)
        except Exception as e:
            err = BracketError(self.call_id, event.event_status, e)
            self._session.logger.error(
                str(err), exc_info=True,
                extra={'call_id': self.call_id,
                       'event_status': event.event_status},
            )
            return err
        return None

    async def _outbound(self, frames):
        # unsubscribes as soon as the provider stops reading
        messages = stream.outbound_messages(frames,
                                            self.mode.channel_definitions)
        try:
            async for message in messages:
                yield message
        finally:
            await messages.aclose()
            await frames.aclose()

    async def open(self):
        """Write START and start streaming.

        :returns: True if transcript segments are being relayed.
        """
        err = await self._write_bracket(self._call_event(events.CALL_START))
        if err is not None:
            self.setup_error = err
            return False
        self.state = CallState.STREAMING_STARTED

        frames = self._session.frames()
        try:
            handle = await self._controller.start_streaming(
                self._media, self._outbound(frames))
        except (SetupError, BracketError) as e:
            self.setup_error = e
            await frames.aclose()
            self._session.logger.error(
                'Failed to start streaming: %s' % e, exc_info=True,
                extra={'call_id': self.call_id},
            )
            return False

        self.transaction_id = handle.session_id
        self.relay = relay.ResponseRelay(handle, self.mode,
                                         self._event_store, self.call_id)
        self.relay.start()
        self.state = CallState.STREAMING_ACTIVE
        return True

    async def close(self):
        """Write END_TRANSCRIPT and END.

        Does not wait for the relay unless ``relay_drain_timeout`` is set,
        segments may still be written after END.
        """
        if self.state in (CallState.IDLE, CallState.CLOSED):
            self.state = CallState.CLOSED
            return

        timeout = self._config.relay_drain_timeout
        if self.relay is not None and timeout > 0:
            if not await self.relay.drain(timeout):
                self._session.logger.warning(
                    'Transcript results still streaming after %ss' % timeout,
                    extra={'call_id': self.call_id},
                )
        if self.relay is not None and self.relay.error is not None:
            await self.relay.aclose()

        if self.state is CallState.STREAMING_ACTIVE:
            await self._write_bracket(events.StatusEvent(
                call_id=self.call_id,
                event_status=events.TRANSCRIPT_END,
                transaction_id=self.transaction_id,
            ))
        await self._write_bracket(self._call_event(events.CALL_END))
        self.state = CallState.CLOSED
        self._session.logger.info('Close handler executed',
                                  extra={'call_id': self.call_id})


def add_stream_to_sink(session, config, provider, event_store, mode=None):
    """Relay every call of session to event_store.

    :param session: Session to follow.
    :type session: session.Session
    :param config: Relay configuration.
    :type config: config.RelayConfig
    :param provider: Transcription provider client.
    :type provider: transcriber.TranscriptionProvider
    :param event_store: Event store client.
    :type event_store: sink.EventStore
    """
    async def on_open(session, selected_media, open_params):
        session.logger.info(
            'Conversation Id: %s' % open_params.conversation_id)
        if selected_media is not None:
            session.logger.info(
                'Channels supported: %s' % (selected_media.channels,))
        lifecycle = CallLifecycle(session, selected_media, open_params,
                                  config, provider, event_store, mode)
        await lifecycle.open()
        return lifecycle.close

    session.add_open_handler(on_open)
