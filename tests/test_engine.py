"""Tests for the per-tick engine and its configuration."""

import numpy as np
import pytest

from phasescope.config import AnalyzerConfig
from phasescope.core.engine import AudioEngine
from phasescope.core.stream import CaptureBuffer, ToneStream

SMALL = AnalyzerConfig(sample_count=1024, bin_count=64, store_buffer_size=4096)


class TestAnalyzerConfig:
    def test_defaults(self):
        config = AnalyzerConfig().validate()
        assert config.sample_count == 8192
        assert config.bin_count == 256
        assert config.sample_rate == 48000
        assert config.focus == 0.5

    @pytest.mark.parametrize(
        "field,value",
        [
            ("sample_count", 2),
            ("bin_count", 0),
            ("sample_rate", -1),
            ("fetch_buffer_size", 0),
            ("focus", 1.2),
            ("taper_shape", 0.0),
        ],
    )
    def test_invalid(self, field, value):
        with pytest.raises(ValueError):
            AnalyzerConfig(**{field: value}).validate()

    def test_overrides_ignore_none(self):
        config = AnalyzerConfig().with_overrides(bin_count=128, focus=None)
        assert config.bin_count == 128
        assert config.focus == 0.5

    def test_overrides_validate(self):
        with pytest.raises(ValueError):
            AnalyzerConfig().with_overrides(focus=2.0)


class TestAudioEngine:
    def test_default_source_is_capture_buffer(self):
        engine = AudioEngine(SMALL)
        assert isinstance(engine.source, CaptureBuffer)
        assert engine.source.capacity == SMALL.store_buffer_size

    def test_analyzer_built_from_config(self):
        engine = AudioEngine(SMALL)
        assert engine.analyzer.buffer_size == 1024
        assert engine.analyzer.bin_count == 64
        assert engine.history is engine.analyzer.history

    def test_update_drains_tone(self):
        source = ToneStream(440.0, SMALL.sample_rate, chunk_size=800)
        engine = AudioEngine(SMALL, source)
        for _ in range(3):
            snapshot = engine.update()
        assert engine.ticks == 3
        assert engine.samples_ingested == 2400
        assert len(snapshot.dft) == 64

    def test_capture_hand_off(self):
        engine = AudioEngine(SMALL)
        engine.source.write(np.full((500, 2), 0.25, dtype=np.float32))
        engine.update()
        assert len(engine.history) == 500
        assert engine.history.at(0) == pytest.approx(0.25 * (1 + 1e-5), rel=1e-6)

    def test_idle_tick_reuses_snapshot(self):
        engine = AudioEngine(SMALL)
        engine.source.write(np.full(100, 0.1, dtype=np.float32))
        first = engine.update()
        second = engine.update()
        assert first is second
        assert engine.ticks == 2
