"""Toolkit for relaying live call audio to a transcription service.

There are three major components of this toolkit:
:class:`session.Session`,
:class:`transcriber.TranscriptionProvider` and
:class:`sink.EventStore`.

:func:`lifecycle.add_stream_to_sink` follows every call of a session: it
streams the call's audio to a provider, writes the provider's results to an
event store and brackets them with call and transcript start/end events.
"""
