"""Shared fixtures for phasescope tests."""

import numpy as np
import pytest

from phasescope.core.analyzer import SpectralAnalyzer

TEST_SR = 48000


def make_sine(frequency: float, n_samples: int, amplitude: float = 0.5, sr: int = TEST_SR) -> np.ndarray:
    t = np.arange(n_samples) / sr
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float64)


@pytest.fixture
def sine():
    """Factory for sine test signals."""
    return make_sine


@pytest.fixture
def noise():
    """Uniform noise in [-1, 1], reproducible."""
    return np.random.RandomState(1234).uniform(-1.0, 1.0, 4096)


@pytest.fixture
def analyzer():
    """Default-sized analyzer: 8192 samples, 256 bins, 48 kHz."""
    return SpectralAnalyzer(buffer_size=8192, bin_count=256, sample_rate=TEST_SR)


@pytest.fixture
def small_analyzer():
    """Small analyzer for fast property checks."""
    return SpectralAnalyzer(buffer_size=1024, bin_count=64, sample_rate=TEST_SR)


@pytest.fixture
def sounddevice():
    """The sounddevice module, or skip when PortAudio is missing."""
    try:
        import sounddevice as sd
    except (ImportError, OSError) as e:
        pytest.skip(f"sounddevice unavailable: {e}")
    return sd


class FakeInputStream:
    """Stands in for ``sounddevice.InputStream``; delivers one block on start."""

    opened = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.closed = False
        FakeInputStream.opened.append(self)

    def start(self):
        self.started = True
        frames = self.kwargs["blocksize"]
        indata = np.full((frames, self.kwargs["channels"]), 0.25, dtype=np.float32)
        self.kwargs["callback"](indata, frames, None, None)

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_input(sounddevice, monkeypatch):
    """Replace the device stream so no audio hardware is opened."""
    FakeInputStream.opened = []
    monkeypatch.setattr(sounddevice, "InputStream", FakeInputStream)
    return FakeInputStream
