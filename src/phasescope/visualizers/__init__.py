"""Text renderers for analysis snapshots."""

from phasescope.visualizers.waveform import render_spectrum, render_waveform

__all__ = ["render_spectrum", "render_waveform"]
