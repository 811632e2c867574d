"""Render-loop statistics."""

from phasescope.stats.frame_timer import FrameStats, FrameTimer

__all__ = ["FrameStats", "FrameTimer"]
