"""
Terminal renderer for the phase-locked waveform and the log spectrum.

Reads the analyzer history and snapshot without mutating either.
"""

from typing import List

import numpy as np

from phasescope.core.analyzer import AnalysisSnapshot
from phasescope.core.ring_buffer import RingBuffer


def render_waveform(
    history: RingBuffer,
    center_sample: float,
    span: float,
    width: int = 120,
    height: int = 24,
    mark: str = "#",
) -> List[str]:
    """
    Draw ``span`` samples of history centred on ``center_sample``.

    Sample positions outside the history are clamped to its ends, since
    ``center_sample`` is allowed to fall outside ``[0, capacity)``.

    Args:
        history: Analyzer sample history.
        center_sample: Logical history index to centre on.
        span: Number of samples shown across the full width.
        width: Columns.
        height: Rows.
        mark: Character plotted for each column.

    Returns:
        ``height`` strings of ``width`` characters, top row first.
    """
    if width <= 0 or height <= 0:
        return []
    if not np.isfinite(center_sample):
        center_sample = history.capacity / 2

    positions = center_sample - span / 2 + (np.arange(width) + 0.5) * span / width
    indices = np.clip(np.round(positions), 0, history.capacity - 1).astype(np.int64)
    values = np.nan_to_num(history.ordered()[indices], nan=0.0)

    rows = np.round((np.clip(values, -1.0, 1.0) / 2 + 0.5) * (height - 1)).astype(np.int64)

    screen = [[" "] * width for _ in range(height)]
    for column, row in enumerate(rows):
        screen[height - 1 - row][column] = mark
    return ["".join(line) for line in screen]


def render_spectrum(
    snapshot: AnalysisSnapshot,
    width: int = 120,
    height: int = 8,
    mark: str = "|",
) -> List[str]:
    """
    Draw bin magnitudes as vertical bars, low frequencies on the left.

    Bins are grouped into ``width`` columns (loudest bin per column) and
    scaled to the loudest column.
    """
    if width <= 0 or height <= 0:
        return []
    magnitudes = np.nan_to_num(snapshot.magnitudes, nan=0.0, posinf=0.0)
    groups = np.array_split(magnitudes, min(width, len(magnitudes)))
    levels = np.array([g.max() if len(g) else 0.0 for g in groups])

    peak = levels.max() if len(levels) else 0.0
    if peak > 0:
        levels = levels / peak
    bars = np.round(levels * height).astype(np.int64)

    lines = []
    for row in range(height, 0, -1):
        line = "".join(mark if bar >= row else " " for bar in bars)
        lines.append(line.ljust(width))
    return lines
