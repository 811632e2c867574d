"""
Per-tick glue between a sample source and the analyzer.
"""

import logging
from typing import Optional

from phasescope.config import AnalyzerConfig
from phasescope.core.analyzer import AnalysisSnapshot, SpectralAnalyzer
from phasescope.core.ring_buffer import RingBuffer
from phasescope.core.stream import CaptureBuffer, SampleSource

logger = logging.getLogger(__name__)


class AudioEngine:
    """
    Owns one analyzer and drains one source into it every tick.

    Without an explicit source a :class:`CaptureBuffer` sized by
    ``config.store_buffer_size`` is created; a capture callback can then
    feed it through ``engine.source.write(frames)``.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        source: Optional[SampleSource] = None,
    ):
        self.config = (config or AnalyzerConfig()).validate()
        self.source = source if source is not None else CaptureBuffer(self.config.store_buffer_size)
        self.analyzer = SpectralAnalyzer(
            buffer_size=self.config.sample_count,
            bin_count=self.config.bin_count,
            sample_rate=self.config.sample_rate,
            focus=self.config.focus,
            taper_shape=self.config.taper_shape,
        )
        self.ticks = 0
        self.samples_ingested = 0

    @property
    def history(self) -> RingBuffer:
        return self.analyzer.history

    def update(self) -> AnalysisSnapshot:
        """Push everything the source produced since the last tick and analyze."""
        pushed = self.analyzer.update(self.source)
        self.ticks += 1
        self.samples_ingested += pushed
        if pushed == 0:
            logger.debug("Tick %d: no new samples", self.ticks)
        return self.analyzer.analyze()
