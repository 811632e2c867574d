"""
Manifest serialization module.

Exports a sequence of analysis snapshots to JSON (or NumPy) so that a
renderer can replay them offline, one entry per frame.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np

from phasescope.core.analyzer import AnalysisSnapshot


@dataclass
class ManifestMetadata:
    """Metadata header for the snapshot manifest."""

    fps: float
    sample_rate: int
    bin_count: int
    n_frames: int
    schema_version: str = "1.0"


class ManifestExporter:
    """
    Exports analysis snapshots to a JSON manifest.

    Snapshots are not sanitised by the analyzer, so every scalar goes
    through :meth:`_safe_float`: NaN and infinities are written as ``null``.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _safe_float(self, value: Any) -> Optional[float]:
        """Rounded float, or None for missing and non-finite values."""
        if value is None:
            return None
        try:
            f = float(value)
        except (TypeError, ValueError):
            return None
        if np.isnan(f) or np.isinf(f):
            return None
        return self._round(f)

    def build_frame(
        self,
        index: int,
        snapshot: AnalysisSnapshot,
        time: float,
    ) -> dict[str, Any]:
        """
        Build a single frame's data dictionary.

        Args:
            index: Frame index.
            snapshot: Snapshot taken for this frame.
            time: Wall-clock time of the frame in seconds.

        Returns:
            Dictionary with all frame data.
        """
        frequency = self._safe_float(snapshot.dominant_frequency)
        return {
            "frame_index": index,
            "time": self._safe_float(time),
            "period": self._safe_float(snapshot.period),
            "focus": self._safe_float(snapshot.focus),
            "center_sample": self._safe_float(snapshot.center_sample),
            "bass": self._safe_float(snapshot.bass),
            "chrono": self._safe_float(snapshot.chrono),
            "dominant_bin": int(snapshot.dominant_bin),
            "dominant_frequency": frequency,
            "note": snapshot.note if frequency is not None else None,
            "spectrum": [self._safe_float(m) for m in snapshot.magnitudes],
        }

    def build_manifest(
        self,
        snapshots: Sequence[AnalysisSnapshot],
        fps: float,
        sample_rate: int,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            snapshots: One snapshot per frame, in order.
            fps: Frame rate the snapshots were taken at.
            sample_rate: Analyzer sample rate in Hz.

        Returns:
            Complete manifest dictionary ready for serialization.
        """
        bin_count = len(snapshots[0].dft) if snapshots else 0
        metadata = ManifestMetadata(
            fps=self._round(fps),
            sample_rate=int(sample_rate),
            bin_count=bin_count,
            n_frames=len(snapshots),
        )

        frames = [
            self.build_frame(i, snapshot, i / fps)
            for i, snapshot in enumerate(snapshots)
        ]

        return {
            "metadata": {
                "fps": metadata.fps,
                "sample_rate": metadata.sample_rate,
                "bin_count": metadata.bin_count,
                "n_frames": metadata.n_frames,
                "schema_version": metadata.schema_version,
            },
            "frames": frames,
        }

    def export_json(
        self,
        snapshots: Sequence[AnalysisSnapshot],
        fps: float,
        sample_rate: int,
        output_path: Union[str, Path],
        indent: Optional[int] = 2,
    ) -> Path:
        """
        Export manifest to JSON file.

        Args:
            snapshots: One snapshot per frame.
            fps: Frame rate.
            sample_rate: Analyzer sample rate.
            output_path: Path for output JSON file.
            indent: JSON indentation level.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(snapshots, fps, sample_rate)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        snapshots: Sequence[AnalysisSnapshot],
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export snapshots as a NumPy .npz archive of stacked arrays.

        Values are stored unsanitised. An empty sequence writes zero-length
        arrays, with ``dft`` shaped ``(0, 0)``.

        Args:
            snapshots: One snapshot per frame.
            output_path: Path for output .npz file.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)

        arrays: dict[str, Any] = dict(
            dft=(
                np.stack([s.dft for s in snapshots])
                if len(snapshots)
                else np.empty((0, 0), dtype=np.complex128)
            ),
            period=np.array([s.period for s in snapshots]),
            focus=np.array([s.focus for s in snapshots]),
            center_sample=np.array([s.center_sample for s in snapshots]),
            bass=np.array([s.bass for s in snapshots]),
            chrono=np.array([s.chrono for s in snapshots]),
            dominant_bin=np.array([s.dominant_bin for s in snapshots], dtype=np.int64),
            dominant_frequency=np.array([s.dominant_frequency for s in snapshots]),
        )

        np.savez_compressed(output_path, **arrays)

        return output_path
