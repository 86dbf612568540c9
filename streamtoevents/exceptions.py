"""Exceptions raised by the relay components."""


class StreamToEventsError(Exception):
    """Base class for every error raised by this package."""


class AlreadyRunningError(StreamToEventsError):
    def __init__(self):
        super(AlreadyRunningError, self).__init__(
            'Object started when it is already running'
        )


class FrameFormatError(StreamToEventsError):
    """Raised when an audio frame cannot be read as linear PCM."""


class SetupError(StreamToEventsError):
    """Raised when the streaming leg of a call cannot be set up."""

    def __init__(self, call_id, cause=None, msg=None):
        self.call_id = call_id
        self.cause = cause
        super(SetupError, self).__init__(
            msg or "Failed to set up streaming for call '%s'" % call_id
        )


class ProviderConnectionError(SetupError):
    """Raised when the handshake with the transcription provider fails."""

    def __init__(self, msg, call_id=None, cause=None):
        self.msg = msg
        super(ProviderConnectionError, self).__init__(
            call_id, cause, 'Connection start failure. Got: %s' % (msg,)
        )


class EventWriteError(StreamToEventsError):
    """Raised by an event store when a record could not be written."""

    def __init__(self, call_id, cause=None):
        self.call_id = call_id
        self.cause = cause
        super(EventWriteError, self).__init__(
            "Failed to write event for call '%s'" % call_id
        )


class RelayError(StreamToEventsError):
    """Failure while translating or writing a provider response."""

    def __init__(self, call_id, cause=None):
        self.call_id = call_id
        self.cause = cause
        super(RelayError, self).__init__(
            "Failed to relay transcript results for call '%s'" % call_id
        )


class BracketError(StreamToEventsError):
    """Failure writing a call or status lifecycle event."""

    def __init__(self, call_id, event_status, cause=None):
        self.call_id = call_id
        self.event_status = event_status
        self.cause = cause
        super(BracketError, self).__init__(
            "Failed to write %s event for call '%s'" % (event_status, call_id)
        )
