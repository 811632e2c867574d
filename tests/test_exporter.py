"""Tests for snapshot manifest export."""

import json

import numpy as np
import pytest

from phasescope.core.analyzer import AnalysisSnapshot, SpectralAnalyzer
from phasescope.io.exporter import ManifestExporter

TEST_SR = 48000


@pytest.fixture
def snapshots(sine):
    analyzer = SpectralAnalyzer(1024, 64, TEST_SR)
    signal = sine(220.0, 4000)
    out = []
    for chunk in np.array_split(signal, 5):
        analyzer.push_many(chunk)
        out.append(analyzer.analyze())
    return out


def _nan_snapshot() -> AnalysisSnapshot:
    return AnalysisSnapshot(
        dft=np.array([np.nan + 0j, 1 + 1j]),
        period=np.nan,
        focus=0.5,
        center_sample=np.inf,
        bass=np.nan,
        chrono=0.0,
        dominant_bin=1,
        dominant_frequency=np.nan,
    )


class TestManifest:
    def test_metadata(self, snapshots):
        manifest = ManifestExporter().build_manifest(snapshots, fps=60, sample_rate=TEST_SR)
        meta = manifest["metadata"]
        assert meta["n_frames"] == 5
        assert meta["bin_count"] == 64
        assert meta["sample_rate"] == TEST_SR
        assert isinstance(meta["schema_version"], str)

    def test_frames(self, snapshots):
        manifest = ManifestExporter().build_manifest(snapshots, fps=60, sample_rate=TEST_SR)
        frames = manifest["frames"]
        assert len(frames) == 5
        assert frames[2]["frame_index"] == 2
        assert frames[2]["time"] == pytest.approx(2 / 60, abs=1e-4)
        for frame, snapshot in zip(frames, snapshots):
            assert frame["bass"] == pytest.approx(snapshot.bass, abs=1e-4)
            assert frame["dominant_bin"] == snapshot.dominant_bin
            assert len(frame["spectrum"]) == 64
            assert 0.0 <= frame["bass"] <= 1.0

    def test_chrono_non_decreasing_across_frames(self, snapshots):
        frames = ManifestExporter().build_manifest(snapshots, 60, TEST_SR)["frames"]
        chronos = [f["chrono"] for f in frames]
        assert chronos == sorted(chronos)

    def test_precision(self, snapshots):
        frame = ManifestExporter(precision=2).build_frame(0, snapshots[-1], 0.0)
        assert frame["period"] == round(snapshots[-1].period, 2)

    def test_non_finite_values_become_none(self):
        frame = ManifestExporter().build_frame(0, _nan_snapshot(), 0.0)
        assert frame["period"] is None
        assert frame["center_sample"] is None
        assert frame["bass"] is None
        assert frame["dominant_frequency"] is None
        assert frame["note"] is None
        assert frame["spectrum"][0] is None
        assert frame["spectrum"][1] == pytest.approx(np.sqrt(2), abs=1e-4)

    def test_empty(self):
        manifest = ManifestExporter().build_manifest([], 60, TEST_SR)
        assert manifest["metadata"]["n_frames"] == 0
        assert manifest["frames"] == []


class TestExportFiles:
    def test_export_json(self, snapshots, tmp_path):
        path = ManifestExporter().export_json(snapshots, 60, TEST_SR, tmp_path / "m.json")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["metadata"]["n_frames"] == 5

    def test_export_json_strict_with_nan(self, tmp_path):
        path = ManifestExporter().export_json([_nan_snapshot()], 60, TEST_SR, tmp_path / "n.json")
        text = path.read_text(encoding="utf-8")
        assert "NaN" not in text
        assert "Infinity" not in text

    def test_export_numpy_empty(self, tmp_path):
        path = ManifestExporter().export_numpy([], tmp_path / "empty.npz")
        with np.load(path) as data:
            assert data["dft"].shape == (0, 0)
            assert len(data["bass"]) == 0
            assert len(data["dominant_bin"]) == 0

    def test_export_numpy(self, snapshots, tmp_path):
        path = ManifestExporter().export_numpy(snapshots, tmp_path / "m.npz")
        with np.load(path) as data:
            assert data["dft"].shape == (5, 64)
            np.testing.assert_allclose(data["bass"], [s.bass for s in snapshots])
