"""Outbound message stream sent to a transcription provider."""

import collections

from streamtoevents import audio


PARTICIPANT_CUSTOMER = 'CUSTOMER'
PARTICIPANT_AGENT = 'AGENT'


ChannelDefinition = collections.namedtuple('ChannelDefinition',
                                           ['channel_id', 'participant_role'])

ConfigurationEvent = collections.namedtuple('ConfigurationEvent',
                                            ['channel_definitions'])

AudioEvent = collections.namedtuple('AudioEvent', ['audio_chunk'])


CHANNEL_DEFINITIONS = (
    ChannelDefinition(channel_id=0, participant_role=PARTICIPANT_CUSTOMER),
    ChannelDefinition(channel_id=1, participant_role=PARTICIPANT_AGENT),
)
"""Channel 0 carries the customer, channel 1 the agent."""


async def outbound_messages(frames, channel_definitions=None):
    """Messages to stream for one call.

    When channel_definitions is given the first message is a single
    :class:`ConfigurationEvent`, sent even if no frame ever arrives. Every
    following message is an :class:`AudioEvent` for one frame. A frame is
    only read when the consumer asks for the next message.

    :param frames: Async iterator of :class:`audio.AudioFrame`.
    :param channel_definitions: Channel layout to announce, if any.
    """
    if channel_definitions is not None:
        yield ConfigurationEvent(tuple(channel_definitions))
    async for frame in frames:
        yield AudioEvent(audio.to_l16(frame))
