"""Records written to the event store."""

import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


CALL_START = 'START'
CALL_END = 'END'
TRANSCRIPT_START = 'START_TRANSCRIPT'
TRANSCRIPT_END = 'END_TRANSCRIPT'

CHANNEL_STEREO = 'STEREO'


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class SinkEvent(BaseModel):
    """Base record. Serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel,
                              populate_by_name=True)

    call_id: str
    created_at: datetime.datetime = Field(default_factory=_utcnow)

    @property
    def partition_key(self):
        return self.call_id

    def to_record(self):
        return self.model_dump(mode='json', by_alias=True)


class CallEvent(SinkEvent):
    """Call started or ended."""

    event_type: Literal['call'] = 'call'
    event_status: Literal['START', 'END']
    channel: str = CHANNEL_STEREO
    from_number: str | None = None
    to_number: str | None = None


class StatusEvent(SinkEvent):
    """Transcription of a call started or ended."""

    event_type: Literal['status'] = 'status'
    event_status: Literal['START_TRANSCRIPT', 'END_TRANSCRIPT']
    channel: str = CHANNEL_STEREO
    transaction_id: str | None = None


class TranscriptSegment(SinkEvent):
    """A transcript event from a plain transcription stream."""

    event_type: Literal['transcript-segment'] = 'transcript-segment'
    event: dict[str, Any]
    transaction_id: str | None = None


class AnalyticsSegment(SinkEvent):
    """An event from a call analytics stream."""

    event_type: Literal['analytics-segment'] = 'analytics-segment'
    event: dict[str, Any]
    transaction_id: str | None = None
