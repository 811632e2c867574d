"""
Upstream sample sources feeding the analyzer.

Architecture Overview
---------------------
::

    DeviceStream callback / decoder / generator
        │
        ▼  write(frames)            (producer thread, lock-protected)
    CaptureBuffer (DeviceStream) / ArrayStream / ToneStream
        │
        ▼  get_samples()            (control loop, once per tick)
    SpectralAnalyzer.push(sample)   (once per sample, arrival order)
        │
        ▼
    SpectralAnalyzer.analyze()      (once per frame)

Every source implements the :class:`SampleSource` protocol: a non-blocking
``get_samples()`` returning the mono samples produced since the previous
call (possibly none).
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Protocol, Union

import librosa
import numpy as np
from scipy import signal as scipy_signal

from phasescope.core.ring_buffer import RingBuffer

logger = logging.getLogger(__name__)


class SampleSource(Protocol):
    """Anything that hands over newly available mono samples."""

    def get_samples(self) -> np.ndarray:
        ...


class CaptureBuffer:
    """
    Thread-safe hand-off between a capture callback and the control loop.

    The producer calls :meth:`write` with raw frames; multi-channel frames
    are downmixed to mono by averaging. When the consumer falls behind, the
    oldest samples are overwritten.

    Parameters
    ----------
    capacity:
        Maximum number of pending mono samples (default: 2 048).
    """

    def __init__(self, capacity: int = 2048):
        self._buffer = RingBuffer(capacity, 0.0, dtype=np.float32)
        self._lock = threading.Lock()
        self.overruns = 0

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    def write(self, frames: np.ndarray) -> None:
        """
        Append captured frames.

        Args:
            frames: ``(n,)`` mono samples or ``(n, channels)`` frames.
        """
        frames = np.asarray(frames, dtype=np.float32)
        if frames.ndim == 2:
            frames = frames.mean(axis=1)
        elif frames.ndim != 1:
            raise ValueError(f"expected 1-D or 2-D frames, got shape {frames.shape}")

        with self._lock:
            dropped = len(self._buffer) + len(frames) - self._buffer.capacity
            for sample in frames:
                self._buffer.push(sample)
        if dropped > 0:
            self.overruns += 1
            logger.warning("Capture buffer overrun: %d samples dropped", dropped)

    def get_samples(self) -> np.ndarray:
        """Drain every pending sample, oldest first."""
        with self._lock:
            return self._buffer.drain()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


class ArrayStream:
    """
    Replays a pre-decoded mono signal in fixed-size chunks, one per tick.

    Parameters
    ----------
    samples:
        1-D signal.
    chunk_size:
        Samples handed over per ``get_samples()`` call.
    sample_rate:
        Sample rate of ``samples`` in Hz (informational).
    """

    def __init__(self, samples: np.ndarray, chunk_size: int = 512, sample_rate: int = 48000):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"expected a mono signal, got shape {samples.shape}")

        self.samples = samples
        self.chunk_size = int(chunk_size)
        self.sample_rate = int(sample_rate)
        self._position = 0

    @classmethod
    def from_file(
        cls,
        audio_path: Union[str, Path],
        sample_rate: int = 48000,
        chunk_size: int = 512,
    ) -> "ArrayStream":
        """
        Decode an audio file (wav, mp3, flac) to mono at ``sample_rate``.

        Args:
            audio_path: Path to the audio file.
            sample_rate: Target sample rate; the file is resampled if needed.
            chunk_size: Samples per tick.
        """
        y, sr_out = librosa.load(audio_path, sr=sample_rate, mono=True)
        logger.debug("Loaded %s: %d samples @ %d Hz", audio_path, len(y), sr_out)
        return cls(y, chunk_size=chunk_size, sample_rate=sr_out)

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self.samples)

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    def get_samples(self) -> np.ndarray:
        chunk = self.samples[self._position : self._position + self.chunk_size]
        self._position += len(chunk)
        return chunk


class ToneStream:
    """
    Endless synthetic test signal with continuous phase across chunks.

    Parameters
    ----------
    frequency:
        Fundamental frequency in Hz.
    sample_rate:
        Output sample rate in Hz.
    chunk_size:
        Samples per ``get_samples()`` call.
    waveform:
        ``"sine"``, ``"square"`` or ``"sawtooth"``.
    amplitude:
        Peak amplitude.
    """

    WAVEFORMS = ("sine", "square", "sawtooth")

    def __init__(
        self,
        frequency: float,
        sample_rate: int = 48000,
        chunk_size: int = 512,
        waveform: str = "sine",
        amplitude: float = 0.5,
    ):
        if waveform not in self.WAVEFORMS:
            raise ValueError(
                f"Unknown waveform '{waveform}', expected one of {', '.join(self.WAVEFORMS)}"
            )
        if frequency <= 0 or sample_rate <= 0 or chunk_size <= 0:
            raise ValueError("frequency, sample_rate and chunk_size must be positive")

        self.frequency = float(frequency)
        self.sample_rate = int(sample_rate)
        self.chunk_size = int(chunk_size)
        self.waveform = waveform
        self.amplitude = float(amplitude)
        self._position = 0

    def get_samples(self) -> np.ndarray:
        n = np.arange(self._position, self._position + self.chunk_size, dtype=np.float64)
        self._position += self.chunk_size
        phase = 2.0 * np.pi * self.frequency * n / self.sample_rate

        if self.waveform == "square":
            wave = scipy_signal.square(phase)
        elif self.waveform == "sawtooth":
            wave = scipy_signal.sawtooth(phase)
        else:
            wave = np.sin(phase)
        return (self.amplitude * wave).astype(np.float32)


class DeviceStream:
    """
    Live capture from an audio input device through ``sounddevice``.

    PortAudio calls :meth:`_callback` on its own thread with every block of
    ``blocksize`` frames; the block is downmixed and written into a
    :class:`CaptureBuffer` that the control loop drains with
    :meth:`get_samples`.

    Parameters
    ----------
    sample_rate:
        Capture rate in Hz.
    channels:
        Number of input channels opened on the device.
    blocksize:
        Frames per callback.
    capacity:
        Pending mono samples kept between ticks.
    device:
        Device index or name; ``None`` selects the default input device.
    """

    def __init__(
        self,
        sample_rate: int = 48000,
        channels: int = 1,
        blocksize: int = 512,
        capacity: int = 2048,
        device: Optional[Union[int, str]] = None,
    ):
        if sample_rate <= 0 or channels <= 0 or blocksize <= 0:
            raise ValueError("sample_rate, channels and blocksize must be positive")

        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.blocksize = int(blocksize)
        self.device = device
        self.buffer = CaptureBuffer(capacity)
        self.status_errors = 0
        self._stream = None

    @classmethod
    def from_config(cls, config, device: Optional[Union[int, str]] = None) -> "DeviceStream":
        """Size the capture from an :class:`~phasescope.config.AnalyzerConfig`."""
        return cls(
            sample_rate=config.sample_rate,
            channels=config.channels,
            blocksize=config.fetch_buffer_size,
            capacity=config.store_buffer_size,
            device=device,
        )

    @property
    def active(self) -> bool:
        return self._stream is not None

    def _callback(self, indata, frames, time, status) -> None:
        if status:
            self.status_errors += 1
            logger.warning("Input stream status: %s", status)
        self.buffer.write(indata)

    def start(self) -> None:
        """
        Open the input device and begin capturing.

        Raises:
            RuntimeError: If sounddevice/PortAudio is unavailable or the
                device cannot be opened.
        """
        if self._stream is not None:
            return
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise RuntimeError(f"Live capture needs sounddevice and PortAudio: {e}") from e

        try:
            stream = sd.InputStream(
                device=self.device,
                channels=self.channels,
                samplerate=self.sample_rate,
                blocksize=self.blocksize,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise RuntimeError(f"Could not open input device {self.device!r}: {e}") from e

        self._stream = stream
        logger.debug(
            "Capturing %d channel(s) @ %d Hz, blocksize %d",
            self.channels,
            self.sample_rate,
            self.blocksize,
        )

    def close(self) -> None:
        """Stop and release the device. Pending samples stay readable."""
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None

    def get_samples(self) -> np.ndarray:
        return self.buffer.get_samples()

    def __enter__(self) -> "DeviceStream":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
