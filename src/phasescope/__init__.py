"""Live log-frequency spectral analysis for audio-reactive visuals."""

from phasescope.config import AnalyzerConfig
from phasescope.core.analyzer import AnalysisSnapshot, SpectralAnalyzer
from phasescope.core.engine import AudioEngine
from phasescope.core.ring_buffer import RingBuffer
from phasescope.io.exporter import ManifestExporter

__version__ = "0.1.0"
__all__ = [
    "AnalyzerConfig",
    "AnalysisSnapshot",
    "SpectralAnalyzer",
    "AudioEngine",
    "RingBuffer",
    "ManifestExporter",
]
