"""
Sliding log-frequency spectral analyzer.

Correlates the retained sample history against a fixed table of per-bin
basis functions (tapered complex exponentials, roughly eight cycles long)
to produce constant-Q spectral magnitudes, a dominant period, a
phase-locked waveform centre and a bass-driven logical clock.

The basis table is built once at construction; ingestion is O(1) and the
correlation runs lazily, at most once per batch of pushed samples.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import librosa
import numpy as np

from phasescope.core.ring_buffer import RingBuffer

logger = logging.getLogger(__name__)

# Bins below this frequency contribute to the bass level, linearly weighted.
BASS_CUTOFF_HZ = 200.0
BASS_SCALE = 10.0

# Slow upward drift of the AGC multiplier, applied per sample.
GAIN_RECOVERY = 1e-5

# Analysis windows span this many periods of the bin frequency.
WINDOW_CYCLES = 8.0


def taper_window(x: np.ndarray, shape: float = 10.0) -> np.ndarray:
    """
    Bump taper used to weight each bin's analysis window.

    ``exp(A * sqrt(1 - x^2)) * exp(-A)`` on ``[-1, 1]`` and 0 outside:
    exactly 1 at the centre, 0 at the edges. Larger ``shape`` values give a
    sharper bump.

    Args:
        x: Positions relative to the window, -1 and 1 being the edges.
        shape: Taper constant ``A``.

    Returns:
        Weights with the same shape as ``x``.
    """
    x = np.asarray(x, dtype=np.float64)
    inside = np.abs(x) <= 1.0
    root = np.sqrt(np.maximum(0.0, 1.0 - x * x))
    return np.where(inside, np.exp(shape * root) * math.exp(-shape), 0.0)


@dataclass(frozen=True)
class BinBasis:
    """Precomputed correlation basis for one frequency bin."""

    window_start: int
    weights: np.ndarray     # taper weight per window offset
    phasors: np.ndarray     # complex unit phasor per window offset
    total_window: float     # sum of weights
    kernel: np.ndarray      # weights * phasors

    @property
    def window_length(self) -> int:
        return len(self.weights)


@dataclass(frozen=True)
class AnalysisSnapshot:
    """
    Feature snapshot for one rendered frame.

    Values are not sanitised: a NaN pushed into the analyzer ends up here.
    """

    dft: np.ndarray             # (bin_count,) complex amplitude per bin
    period: float               # dominant period in samples
    focus: float                # [0,1] position of the display centre in the history
    center_sample: float        # history index to centre a phase-stable waveform on
    bass: float                 # [0,1]
    chrono: float               # bass-weighted logical clock, seconds
    dominant_bin: int = 1
    dominant_frequency: float = 0.0

    @property
    def magnitudes(self) -> np.ndarray:
        return np.abs(self.dft)

    @property
    def dft_pairs(self) -> np.ndarray:
        """DFT as a (bin_count, 2) array of (real, imag) pairs."""
        return np.stack([self.dft.real, self.dft.imag], axis=1)

    @property
    def note(self) -> Optional[str]:
        """Note name of the dominant frequency, e.g. ``"A4"``."""
        if not np.isfinite(self.dominant_frequency) or self.dominant_frequency <= 0:
            return None
        return librosa.hz_to_note(self.dominant_frequency)


class SpectralAnalyzer:
    """
    Live analyzer over a bounded history of gain-controlled samples.

    Call :meth:`push` for every new sample, then :meth:`analyze` once per
    frame. Not thread-safe: one control loop must own the instance.
    """

    def __init__(
        self,
        buffer_size: int,
        bin_count: int,
        sample_rate: int,
        focus: float = 0.5,
        taper_shape: float = 10.0,
    ):
        """
        Initialize the analyzer and precompute the basis table.

        Args:
            buffer_size: Number of retained samples.
            bin_count: Number of log-spaced frequency bins.
            sample_rate: Sample rate in Hz.
            focus: Where in the history (0 = oldest, 1 = newest) the
                   phase-locked display centre sits.
            taper_shape: Taper constant ``A`` of :func:`taper_window`.

        Raises:
            ValueError: On non-positive sizes, ``buffer_size / 2 <= 1``, a
                        bin count too small for a single bin per octave,
                        or an out-of-range focus.
        """
        if buffer_size <= 0 or bin_count <= 0 or sample_rate <= 0:
            raise ValueError(
                "buffer_size, bin_count and sample_rate must be positive, got "
                f"{buffer_size}, {bin_count}, {sample_rate}"
            )
        if buffer_size / 2 <= 1:
            raise ValueError(f"buffer_size must be greater than 2, got {buffer_size}")
        if taper_shape <= 0:
            raise ValueError(f"taper_shape must be positive, got {taper_shape}")

        self.buffer_size = int(buffer_size)
        self.bin_count = int(bin_count)
        self.sample_rate = int(sample_rate)
        self.taper_shape = float(taper_shape)

        self.lowest_frequency = self.sample_rate / self.buffer_size
        self.exp_bins = math.floor(self.bin_count / math.log2(self.buffer_size / 2))
        if self.exp_bins < 1:
            raise ValueError(
                f"bin_count {bin_count} is below one bin per octave for "
                f"buffer_size {buffer_size}"
            )

        self._basis = tuple(self._compute_basis(b) for b in range(self.bin_count))
        frequencies = self.frequency(np.arange(self.bin_count, dtype=np.float64))
        self._bass_eq = np.maximum(0.0, 1.0 - frequencies / BASS_CUTOFF_HZ)
        self._bass_total = float(self._bass_eq.sum())

        self._buffer = RingBuffer(self.buffer_size, 0.0)
        self._gain = 1.0
        self._since_last_ingestion = 0
        self._chrono = 0.0
        self._focus = 0.5
        self.focus = focus
        self._snapshot: Optional[AnalysisSnapshot] = None

        logger.debug(
            "SpectralAnalyzer: buffer=%d bins=%d sr=%d lowest=%.3fHz exp_bins=%d taps=%d",
            self.buffer_size,
            self.bin_count,
            self.sample_rate,
            self.lowest_frequency,
            self.exp_bins,
            sum(basis.window_length for basis in self._basis),
        )

    # ------------------------------------------------------------------
    # Frequency mapping
    # ------------------------------------------------------------------

    def frequency(self, bin_index):
        """Centre frequency in Hz of a (possibly fractional) bin."""
        return self.lowest_frequency * np.exp2(np.asarray(bin_index) / self.exp_bins)

    def bin(self, frequency):
        """Fractional bin index of a frequency in Hz."""
        return self.exp_bins * np.log2(np.asarray(frequency) / self.lowest_frequency)

    def _compute_basis(self, bin_index: int) -> BinBasis:
        buffer_size_f = float(self.buffer_size)
        frequency = float(self.frequency(bin_index))
        sample_period = self.sample_rate / frequency
        phase_delta = 2.0 * math.pi / sample_period
        window_size = min(WINDOW_CYCLES * sample_period, buffer_size_f)

        window_start = math.floor((buffer_size_f - window_size) * 0.5)
        window_end = math.ceil((buffer_size_f + window_size) * 0.5)

        sample_index = np.arange(window_start, window_end, dtype=np.float64)
        weights = taper_window(
            (sample_index * 2.0 - buffer_size_f) / window_size, self.taper_shape
        )
        phase = phase_delta * sample_index
        phasors = np.cos(phase) + 1j * np.sin(phase)

        for arr in (weights, phasors):
            arr.flags.writeable = False
        kernel = weights * phasors
        kernel.flags.writeable = False

        return BinBasis(
            window_start=window_start,
            weights=weights,
            phasors=phasors,
            total_window=float(weights.sum()),
            kernel=kernel,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def basis(self) -> tuple:
        """Per-bin basis table, indexed by bin."""
        return self._basis

    @property
    def history(self) -> RingBuffer:
        """Retained gain-adjusted samples. Read only."""
        return self._buffer

    @property
    def gain(self) -> float:
        return self._gain

    @property
    def chrono(self) -> float:
        """Logical clock in seconds, as of the last analysis."""
        return self._chrono / self.sample_rate

    @property
    def focus(self) -> float:
        return self._focus

    @focus.setter
    def focus(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"focus must be within [0, 1], got {value}")
        self._focus = float(value)
        self._snapshot = None

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def push(self, sample: float) -> None:
        """
        Ingest one raw sample through the automatic gain control.

        The gain creeps up by a small constant every sample and is cut
        immediately whenever the scaled sample would exceed unit magnitude,
        so a finite stored value always satisfies ``|value| <= 1``. Infinite
        input drives the gain to zero and stores NaN.
        """
        self._gain += GAIN_RECOVERY
        value = sample * self._gain
        volume = abs(value)
        if volume > 1.0:
            self._gain /= volume
            if math.isfinite(value):
                value = math.copysign(1.0, value)
            else:
                value = sample * self._gain
        self._buffer.push(value)
        self._since_last_ingestion += 1
        self._snapshot = None

    def push_many(self, samples: Iterable[float]) -> None:
        """Push samples in arrival order."""
        for sample in samples:
            self.push(float(sample))

    def update(self, source) -> int:
        """
        Drain a sample source into the analyzer.

        Args:
            source: Object with a ``get_samples()`` method.

        Returns:
            Number of samples pushed.
        """
        samples = source.get_samples()
        self.push_many(samples)
        return len(samples)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def _correlate(self, history: np.ndarray) -> np.ndarray:
        dft = np.zeros(self.bin_count, dtype=np.complex128)
        for b, basis in enumerate(self._basis):
            segment = history[basis.window_start : basis.window_start + basis.window_length]
            amplitude = np.dot(segment, basis.kernel)
            if basis.total_window != 0.0:
                dft[b] = amplitude / basis.total_window
        return dft

    def _dominant_bin(self, magnitudes: np.ndarray) -> int:
        """
        Lowest-biased local maximum of the magnitude spectrum.

        Bin ``b - 1`` is a candidate when it is at least as loud as both
        neighbours; candidates are scored ``|dft[b-1]| * (1 - b / bin_count)``
        and the first strictly best score wins. Falls back to bin 1.
        """
        if self.bin_count < 2:
            return 1
        prev = magnitudes[:-1]
        cur = magnitudes[1:]
        prevprev = np.concatenate(([0.0], magnitudes[:-2]))
        b = np.arange(1, self.bin_count, dtype=np.float64)
        score = prev * (1.0 - b / self.bin_count)

        candidate = (prev >= cur) & (prev >= prevprev) & (score > 0.0)
        if not candidate.any():
            return 1
        return int(np.argmax(np.where(candidate, score, -np.inf)))

    def analyze(self) -> AnalysisSnapshot:
        """
        Return the feature snapshot for the current history.

        Recomputed only when samples were pushed (or focus changed) since
        the previous call; otherwise the cached snapshot is returned.
        """
        if self._snapshot is not None:
            return self._snapshot

        dft = self._correlate(self._buffer.ordered())
        magnitudes = np.abs(dft)

        if self._bass_total > 0.0:
            bass_sum = float(np.dot(self._bass_eq, magnitudes))
            bass = float(np.clip(bass_sum / self._bass_total * BASS_SCALE, 0.0, 1.0))
        else:
            bass = 0.0

        self._chrono += self._since_last_ingestion * bass
        self._since_last_ingestion = 0

        max_bin = self._dominant_bin(magnitudes)
        frequency = float(self.frequency(max_bin))
        period = self.sample_rate / frequency
        phase = dft[max_bin] if max_bin < self.bin_count else 0j
        angle = math.atan2(phase.imag, phase.real) / (2.0 * math.pi) - 0.25
        center_sample = (angle + math.ceil(self.buffer_size * self._focus / period)) * period

        dft.flags.writeable = False
        self._snapshot = AnalysisSnapshot(
            dft=dft,
            period=period,
            focus=self._focus,
            center_sample=center_sample,
            bass=bass,
            chrono=self._chrono / self.sample_rate,
            dominant_bin=max_bin,
            dominant_frequency=frequency,
        )
        return self._snapshot
