import io
import threading
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from .loopgenlog import LOG


class LoopingBuffer:
    """
    Decoded audio frames read in blocks. Reaching the end of the stream seeks
    back to frame zero and keeps going; there is no stop condition.
    """

    def __init__(self, frames: np.ndarray):
        if frames.ndim == 1:
            frames = frames.reshape(-1, 1)
        if len(frames) == 0:
            raise ValueError("Cannot loop an empty stream")
        self.frames = frames
        self.position = 0
        self.loops = 0
        self._lock = threading.Lock()

    @property
    def channels(self) -> int:
        return self.frames.shape[1]

    def seek(self, position: int = 0):
        with self._lock:
            self.position = position % len(self.frames)

    def read(self, count: int) -> np.ndarray:
        """Return exactly `count` frames, wrapping at end of stream."""
        out = np.empty((count, self.channels), dtype=self.frames.dtype)
        filled = 0
        with self._lock:
            while filled < count:
                take = min(count - filled, len(self.frames) - self.position)
                out[filled : filled + take] = self.frames[
                    self.position : self.position + take
                ]
                filled += take
                self.position += take
                if self.position >= len(self.frames):
                    self.position = 0
                    self.loops += 1
                    LOG.debug("End of stream reached, restarting (loop %d)", self.loops)
        return out


def _default_stream_factory(**kwargs):
    import sounddevice as sd

    return sd.OutputStream(**kwargs)


class AudioPlayer:
    """
    Streams a generated track over HTTP and plays it on a loop until stopped
    or replaced.
    """

    def __init__(
        self,
        fetch: Callable[[str], bytes],
        stream_factory: Optional[Callable[..., object]] = None,
        blocksize: int = 2048,
    ):
        self._fetch = fetch
        self._stream_factory = stream_factory or _default_stream_factory
        self.blocksize = blocksize
        self.url: Optional[str] = None
        self.data: Optional[bytes] = None
        self.buffer: Optional[LoopingBuffer] = None
        self.samplerate: Optional[int] = None
        self._stream = None

    @property
    def is_playing(self) -> bool:
        return self._stream is not None

    @staticmethod
    def decode(data: bytes):
        frames, samplerate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        return frames, samplerate

    def _callback(self, outdata, frames, time_info, status):
        if status:
            LOG.debug("Output stream status: %s", status)
        outdata[:] = self.buffer.read(frames)

    def play(self, url: str):
        """Download, decode and start looping playback immediately."""
        self.stop()
        self.url = url
        self.data = self._fetch(url)
        frames, self.samplerate = self.decode(self.data)
        self.buffer = LoopingBuffer(frames)
        LOG.info(
            "Playing %s (%d frames, %d Hz, %d ch) on loop",
            url,
            len(frames),
            self.samplerate,
            self.buffer.channels,
        )
        stream = self._stream_factory(
            samplerate=self.samplerate,
            channels=self.buffer.channels,
            dtype="float32",
            blocksize=self.blocksize,
            callback=self._callback,
        )
        stream.start()
        self._stream = stream

    def stop(self):
        if self._stream is None:
            return
        LOG.info("Stopping playback of %s", self.url)
        try:
            self._stream.stop()
        finally:
            self._stream.close()
            self._stream = None

    def save_audio(self, path: str) -> str:
        if self.data is None:
            raise RuntimeError("Nothing has been downloaded yet")
        with open(path, "wb") as f:
            f.write(self.data)
        LOG.info("Saved audio to %s", path)
        return path
