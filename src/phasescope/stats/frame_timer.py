"""
Per-frame wall-clock timing for the render loop.
"""

import time
from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass
class FrameStats:
    """Summary of recorded frame durations, in seconds."""

    count: int
    mean: float
    minimum: float
    maximum: float

    @property
    def fps(self) -> float:
        return 1.0 / self.mean if self.mean > 0 else float("inf")


class FrameTimer:
    """Records how long each frame between start_frame/end_frame took."""

    def __init__(self):
        self.start_time = time.perf_counter()
        self._frame_start = self.start_time
        self.frame_times: List[float] = []

    def start_frame(self) -> None:
        self._frame_start = time.perf_counter()

    def end_frame(self) -> None:
        self.frame_times.append(time.perf_counter() - self._frame_start)

    def results(self) -> FrameStats:
        """
        Summarize recorded frames.

        Raises:
            ValueError: If no frame has been recorded.
        """
        if not self.frame_times:
            raise ValueError("No frames recorded")
        times = np.array(self.frame_times)
        return FrameStats(
            count=len(times),
            mean=float(times.mean()),
            minimum=float(times.min()),
            maximum=float(times.max()),
        )

    def format_results(self) -> str:
        stats = self.results()
        return (
            f"{stats.count} frames: avg={stats.mean * 1000:.2f} ms ({stats.fps:.1f} fps), "
            f"min={stats.minimum * 1000:.2f} ms, max={stats.maximum * 1000:.2f} ms"
        )

    def clear(self) -> None:
        self.frame_times.clear()
