"""Streaming modes

A provider can either transcribe a call or run call analytics on it. Both
take almost the same start request and return differently shaped events.
A :class:`StreamingMode` holds everything that differs between the two:
how the start request is built, whether the outbound stream announces the
channel layout, and how provider events become sink events.
"""

from pydantic import BaseModel

from streamtoevents import events
from streamtoevents import stream


MEDIA_ENCODING_PCM = 'pcm'
REDACTION_TYPE_PII = 'PII'


class StreamingRequest(BaseModel, frozen=True):
    """Parameters of a provider start request."""

    mode: str
    language_code: str
    media_sample_rate_hz: int
    media_encoding: str = MEDIA_ENCODING_PCM
    vocabulary_name: str | None = None
    content_redaction_type: str | None = None
    pii_entity_types: str | None = None
    enable_channel_identification: bool | None = None
    number_of_channels: int | None = None

    def to_wire(self):
        """Request parameters with unset options left out."""
        return self.model_dump(exclude_none=True)


def redaction_params(config):
    """Redaction options for a start request.

    Nothing is sent unless redaction is enabled, and the PII entity list
    only goes with the ``PII`` redaction type.
    """
    if not config.content_redaction_enabled:
        return {}
    params = {'content_redaction_type': config.content_redaction_type}
    if config.content_redaction_type == REDACTION_TYPE_PII:
        params['pii_entity_types'] = config.pii_entity_types
    return params


class StreamingMode(object):
    """Base class for a streaming mode.

    Subclasses set :attr:`name`, and override :func:`channel_params` and
    :func:`to_sink_event`.
    """
    name = None
    channel_definitions = None
    """Channel layout sent at the start of the outbound stream, if any."""

    def build_request(self, config, media=None):
        rate = media.rate if media is not None else None
        params = {
            'mode': self.name,
            'language_code': config.language_code,
            'media_sample_rate_hz': rate or config.default_sample_rate,
            'media_encoding': MEDIA_ENCODING_PCM,
            'vocabulary_name': config.custom_vocabulary_name,
        }
        params.update(redaction_params(config))
        params.update(self.channel_params(config, media))
        return StreamingRequest(**params)

    def channel_params(self, config, media):
        return {}

    def to_sink_event(self, event, call_id, transaction_id):
        """Sink event for one provider event, or None to skip it."""
        raise NotImplementedError()


class TranscriptionMode(StreamingMode):
    name = 'transcription'

    def channel_params(self, config, media):
        channels = media.channels if media is not None else None
        return {
            'enable_channel_identification': True,
            'number_of_channels': (len(channels) if channels
                                   else config.default_channel_count),
        }

    def to_sink_event(self, event, call_id, transaction_id):
        message = event.get('TranscriptEvent')
        if message is None:
            return None
        return events.TranscriptSegment(event=message, call_id=call_id,
                                        transaction_id=transaction_id)


class CallAnalyticsMode(StreamingMode):
    name = 'call-analytics'
    channel_definitions = stream.CHANNEL_DEFINITIONS

    def to_sink_event(self, event, call_id, transaction_id):
        return events.AnalyticsSegment(event=event, call_id=call_id,
                                       transaction_id=transaction_id)


def select_mode(config):
    if config.call_analytics_enabled:
        return CallAnalyticsMode()
    return TranscriptionMode()
