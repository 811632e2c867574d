"""Core audio processing modules."""

from phasescope.core.ring_buffer import RingBuffer
from phasescope.core.analyzer import AnalysisSnapshot, BinBasis, SpectralAnalyzer
from phasescope.core.stream import ArrayStream, CaptureBuffer, DeviceStream, SampleSource, ToneStream
from phasescope.core.engine import AudioEngine

__all__ = [
    "RingBuffer",
    "AnalysisSnapshot",
    "BinBasis",
    "SpectralAnalyzer",
    "ArrayStream",
    "CaptureBuffer",
    "DeviceStream",
    "SampleSource",
    "ToneStream",
    "AudioEngine",
]
