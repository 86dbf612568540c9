"""Streaming transcription components

A :class:`TranscriptionProvider` opens a bidirectional stream to a
transcription service: it consumes the outbound message stream and hands
back a :class:`StreamingSessionHandle` holding the provider's session id
and its response events. :class:`StreamingController` starts that stream
for one call.
"""

import asyncio
import json
import logging

import websockets
import websockets.exceptions

from streamtoevents import events
from streamtoevents import modes
from streamtoevents import stream
from streamtoevents.exceptions import (
    BracketError,
    FrameFormatError,
    ProviderConnectionError,
)


logger = logging.getLogger(__name__)


class StreamingSessionHandle(object):
    """A started provider stream.

    :param session_id: Identifier the provider gave the stream.
    :type session_id: str
    :param events: Async iterator of provider events, as dicts.
    :param close: Optional coroutine function releasing the stream.
    """
    def __init__(self, session_id, events, close=None):
        self.session_id = session_id
        self.events = events
        self._close = close

    async def aclose(self):
        if self._close is not None:
            await self._close()

    def __str__(self):
        return 'StreamingSessionHandle(session_id=%s)' % self.session_id


class TranscriptionProvider(object):
    """Base class for a streaming transcription service client.

    Subclasses should override :func:`start_stream`.
    """
    async def start_stream(self, request, audio_stream):
        """Start a stream and begin consuming audio_stream.

        :param request: Start request parameters.
        :type request: modes.StreamingRequest
        :param audio_stream: Async generator of outbound messages, closed
            once the provider stops consuming it.
        :rtype: StreamingSessionHandle
        :raises ProviderConnectionError: The handshake did not succeed.
        """
        raise NotImplementedError()


class WebsocketTranscriptionProvider(TranscriptionProvider):
    """Provider reached over a websocket.

    The start request is sent as a JSON ``start`` action, the channel
    layout as a JSON ``configure`` action, audio as binary frames and a
    ``stop`` action after the last chunk. Every text frame received after
    the handshake is a provider event.

    :param url: Websocket URL of the provider.
    :type url: str
    """
    def __init__(self, url):
        self._url = url

    @classmethod
    def from_config(cls, config):
        return cls(config.resolved_provider_url)

    async def start_stream(self, request, audio_stream):
        try:
            ws = await websockets.connect(self._url)
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise ProviderConnectionError(str(e), cause=e) from e

        try:
            session_id = await self._send_start(ws, request)
        except Exception:
            await ws.close()
            raise

        sender = asyncio.ensure_future(
            self._send_audio(ws, audio_stream, session_id)
        )

        async def close():
            if not sender.done():
                sender.cancel()
            await ws.close()

        return StreamingSessionHandle(session_id,
                                      self._read_events(ws, close),
                                      close)

    async def _send_start(self, ws, request):
        start_data = {'action': 'start'}
        start_data.update(request.to_wire())
        try:
            await ws.send(json.dumps(start_data))
            msg = json.loads(await ws.recv())
        except websockets.exceptions.ConnectionClosed as e:
            raise ProviderConnectionError(str(e), cause=e) from e
        if msg.get('state') != 'listening' or not msg.get('session_id'):
            raise ProviderConnectionError(msg)
        return msg['session_id']

    async def _send_audio(self, ws, audio_stream, session_id):
        try:
            async for message in audio_stream:
                if isinstance(message, stream.ConfigurationEvent):
                    await self._send_configuration(ws, message)
                else:
                    await ws.send(message.audio_chunk)
            await ws.send(json.dumps({'action': 'stop'}))
        except websockets.exceptions.ConnectionClosed:
            logger.info('Provider closed the stream while sending audio',
                        extra={'transaction_id': session_id})
        except FrameFormatError:
            logger.exception('Malformed audio frame, ending stream',
                             extra={'transaction_id': session_id})
            await ws.close()
        except Exception:
            logger.exception('Error sending audio, ending stream',
                             extra={'transaction_id': session_id})
            await ws.close()
        finally:
            await audio_stream.aclose()

    async def _send_configuration(self, ws, message):
        definitions = [
            {'channel_id': d.channel_id,
             'participant_role': d.participant_role}
            for d in message.channel_definitions
        ]
        await ws.send(json.dumps({'action': 'configure',
                                  'channel_definitions': definitions}))

    async def _read_events(self, ws, close):
        try:
            while True:
                try:
                    read = await ws.recv()
                except websockets.exceptions.ConnectionClosed:
                    break
                if isinstance(read, bytes):
                    continue
                yield json.loads(read)
        finally:
            await close()


class StreamingController(object):
    """Starts the provider stream for one call.

    :param call_id: Conversation id of the call.
    :type call_id: str
    :param config: Relay configuration.
    :type config: config.RelayConfig
    :param provider: Transcription provider client.
    :type provider: TranscriptionProvider
    :param event_store: Store the START_TRANSCRIPT status is written to.
    :param mode: Streaming mode, selected from config when not given.
    :type mode: modes.StreamingMode
    """
    def __init__(self, call_id, config, provider, event_store, mode=None):
        self.call_id = call_id
        self.mode = mode or modes.select_mode(config)
        self._config = config
        self._provider = provider
        self._event_store = event_store

    async def start_streaming(self, media, outbound):
        """Start streaming outbound and announce the transcript start.

        :param media: Media selected for the call.
        :type media: session.SelectedMedia
        :param outbound: Async iterator from :func:`stream.outbound_messages`
        :rtype: StreamingSessionHandle
        :raises ProviderConnectionError: The handshake did not succeed.
        :raises BracketError: START_TRANSCRIPT could not be written.
        """
        request = self.mode.build_request(self._config, media)
        try:
            handle = await self._provider.start_stream(request, outbound)
        except ProviderConnectionError as e:
            e.call_id = self.call_id
            raise
        except Exception as e:
            raise ProviderConnectionError(
                str(e), call_id=self.call_id, cause=e) from e

        logger.info(
            'Received initial response from provider',
            extra={'call_id': self.call_id,
                   'transaction_id': handle.session_id,
                   'mode': self.mode.name},
        )

        status = events.StatusEvent(
            call_id=self.call_id,
            event_status=events.TRANSCRIPT_START,
            transaction_id=handle.session_id,
        )
        try:
            await self._event_store.write(status)
        except Exception as e:
            await handle.aclose()
            raise BracketError(self.call_id, events.TRANSCRIPT_START,
                               e) from e
        return handle
