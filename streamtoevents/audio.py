"""Audio frames and frame adaptation

Sessions produce :class:`AudioFrame` objects. Before audio is sent to a
transcription provider every frame is adapted with :func:`to_l16` into
interleaved little-endian 16 bit linear PCM.
"""


import collections
import wave

import numpy as np

from streamtoevents.exceptions import FrameFormatError


FORMAT_L16 = 'L16'
FORMAT_PCMU = 'PCMU'

SAMPLE_WIDTH = 2


class NoMoreFramesError(Exception):
    pass


AudioFrame = collections.namedtuple('AudioFrame',
                                    ['audio', 'format', 'rate', 'channels'])
"""One unit of captured audio.

This is what a session emits on its ``audio`` event stream.

:param audio: Interleaved samples for all channels.
:type audio: bytes-like
:param format: Sample format, ``L16`` or ``PCMU``.
:type format: str
:param rate: Sampling frequency.
:type rate: int
:param channels: Number of interleaved channels.
:type channels: int
"""


def _ulaw_table():
    table = np.zeros(256, dtype='<i2')
    for code in range(256):
        u = ~code & 0xFF
        exponent = (u >> 4) & 0x07
        mantissa = u & 0x0F
        sample = (((mantissa << 3) + 0x84) << exponent) - 0x84
        table[code] = -sample if u & 0x80 else sample
    return table


_ULAW_TO_L16 = _ulaw_table()


def frame_sample_cnt(frame):
    """Number of samples per channel in an AudioFrame

    :param frame: The frame to examine.
    :type frame: AudioFrame
    """
    width = SAMPLE_WIDTH if frame.format == FORMAT_L16 else 1
    return int(memoryview(frame.audio).nbytes / (width * frame.channels))


def to_l16(frame):
    """Linear 16 bit PCM bytes for a frame.

    L16 frames are returned as a view over the frame's own buffer, nothing
    is copied. PCMU frames are expanded into a new buffer.

    :param frame: Frame to adapt.
    :type frame: AudioFrame
    :rtype: memoryview
    :raises FrameFormatError: The frame is not well formed.
    """
    if not frame.channels or frame.channels < 1:
        raise FrameFormatError(
            'Invalid channel count: %r' % (frame.channels,)
        )
    try:
        view = memoryview(frame.audio).cast('B')
    except TypeError as e:
        raise FrameFormatError('Frame audio is not a buffer: %s' % e) from e

    if frame.format == FORMAT_L16:
        if view.nbytes % (SAMPLE_WIDTH * frame.channels):
            raise FrameFormatError(
                'L16 frame of %d bytes is not a whole number of %d channel '
                'samples' % (view.nbytes, frame.channels)
            )
        return view
    elif frame.format == FORMAT_PCMU:
        if view.nbytes % frame.channels:
            raise FrameFormatError(
                'PCMU frame of %d bytes is not a whole number of %d channel '
                'samples' % (view.nbytes, frame.channels)
            )
        codes = np.frombuffer(view, dtype=np.uint8)
        return memoryview(_ULAW_TO_L16[codes].tobytes())
    raise FrameFormatError('Unsupported frame format: %r' % (frame.format,))


class _ListenCtxtMgr(object):
    def __init__(self, source):
        self._source = source

    async def __aenter__(self):
        await self._source.start()

    async def __aexit__(self, *args):
        await self._source.stop()


class FrameSourceIterator(object):
    """Iterate over the frames in a frame source

    :param source: Source to iterate over.
    """
    def __init__(self, source):
        self._source = source

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return await self._source.get_frame()
        except NoMoreFramesError:
            raise StopAsyncIteration('No more frames')


class WaveFrameSource(object):
    """Use a wave file as a source of audio frames.

    Stereo files keep both channels interleaved, which is the layout a two
    channel call is streamed in.

    :parameter wave_path: Path to wave file.
    :type wave_path: string
    :parameter chunk_frames: Number of wave frames per AudioFrame
    :type chunk_frames: int
    """
    def __init__(self, wave_path, chunk_frames=160):
        self._wave_path = wave_path
        self._chunk_frames = chunk_frames
        self._wave_fp = None
        self.rate = None
        self.channels = None

    def listen(self):
        """Async context manager which opens and closes the wave file."""
        return _ListenCtxtMgr(self)

    @property
    def frames(self):
        """Async iterator over get_frame"""
        return FrameSourceIterator(self)

    async def start(self):
        self._wave_fp = wave.open(self._wave_path, 'rb')
        if self._wave_fp.getsampwidth() != SAMPLE_WIDTH:
            width = self._wave_fp.getsampwidth()
            self._wave_fp.close()
            raise FrameFormatError(
                'Only 16 bit wave files are supported, got %d bit' %
                (width * 8)
            )
        self.rate = self._wave_fp.getframerate()
        self.channels = self._wave_fp.getnchannels()
        if self.channels > 2:
            self._wave_fp.close()
            raise FrameFormatError(
                'At most two channels are supported, got %d' % self.channels
            )

    async def stop(self):
        self._wave_fp.close()

    async def get_frame(self):
        data = self._wave_fp.readframes(self._chunk_frames)
        if len(data) == 0:
            raise NoMoreFramesError('No more frames in wav')
        return AudioFrame(audio=data, format=FORMAT_L16, rate=self.rate,
                          channels=self.channels)
