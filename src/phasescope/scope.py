"""
Terminal oscilloscope driven by the spectral analyzer.

Feeds live input, an audio file or a synthetic tone through the analysis engine one
tick at a time, draws the phase-locked waveform and spectrum, and can
write the per-frame snapshots to a JSON manifest.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

from phasescope.config import AnalyzerConfig
from phasescope.core.analyzer import AnalysisSnapshot
from phasescope.core.engine import AudioEngine
from phasescope.core.stream import ArrayStream, DeviceStream, ToneStream
from phasescope.io.exporter import ManifestExporter
from phasescope.stats.frame_timer import FrameTimer
from phasescope.visualizers.waveform import render_spectrum, render_waveform

logger = logging.getLogger(__name__)

DISPLAY_PERIODS = 4


def run_scope(
    engine: AudioEngine,
    frames: Optional[int] = None,
    draw: Optional[Callable[[List[str]], None]] = None,
    width: int = 120,
    height: int = 24,
    timer: Optional[FrameTimer] = None,
    frame_interval: Optional[float] = None,
) -> List[AnalysisSnapshot]:
    """
    Run the tick loop.

    Stops after ``frames`` ticks, or when an :class:`ArrayStream` source is
    exhausted, whichever comes first.

    Args:
        engine: Engine whose source produces one tick of samples per call.
        frames: Maximum number of ticks (None = until the source runs dry).
        draw: Optional callback receiving the rendered text rows per frame.
        width: Drawing width in columns.
        height: Waveform height in rows.
        timer: Optional frame timer to record tick durations.
        frame_interval: Minimum seconds per tick. Live sources need this so
            each tick collects a frame of audio instead of spinning.

    Returns:
        The snapshot of every tick, in order.
    """
    if frames is None and not isinstance(engine.source, ArrayStream):
        raise ValueError("frames is required for endless sources")

    snapshots = []
    while frames is None or len(snapshots) < frames:
        if isinstance(engine.source, ArrayStream) and engine.source.exhausted:
            break
        tick_start = time.perf_counter()
        if timer is not None:
            timer.start_frame()

        snapshot = engine.update()
        snapshots.append(snapshot)

        if draw is not None:
            history = engine.history
            span = min(history.capacity, max(width, DISPLAY_PERIODS * snapshot.period))
            rows = render_waveform(history, snapshot.center_sample, span, width, height)
            rows += render_spectrum(snapshot, width, max(1, height // 3))
            note = snapshot.note or "-"
            rows.append(
                f"f={snapshot.dominant_frequency:8.2f} Hz ({note:>4})  "
                f"bass={snapshot.bass:4.2f}  chrono={snapshot.chrono:8.3f} s"
            )
            draw(rows)

        if timer is not None:
            timer.end_frame()

        if frame_interval is not None:
            remaining = frame_interval - (time.perf_counter() - tick_start)
            if remaining > 0:
                time.sleep(remaining)

    return snapshots


def _terminal_draw(rows: List[str]) -> None:
    if sys.stdout.isatty():
        sys.stdout.write("\x1b[H\x1b[2J")
    sys.stdout.write("\n".join(rows) + "\n")
    sys.stdout.flush()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Phase-locked terminal oscilloscope and spectrum analyzer"
    )

    parser.add_argument(
        "audio",
        type=Path,
        nargs="?",
        default=None,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "--tone",
        type=float,
        default=None,
        help="Analyze a synthetic tone of this frequency in Hz instead of a file",
    )

    parser.add_argument(
        "--live",
        action="store_true",
        help="Capture from an audio input device instead of a file",
    )

    parser.add_argument(
        "--device",
        default=None,
        help="Input device index or name for --live (default: system default)",
    )

    parser.add_argument(
        "--waveform",
        choices=ToneStream.WAVEFORMS,
        default="sine",
        help="Waveform of the synthetic tone (default: sine)",
    )

    parser.add_argument(
        "-n", "--frames",
        type=int,
        default=None,
        help="Number of frames to analyze (default: whole file, 300 for tones, 600 for live input)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=int,
        default=60,
        help="Frames per second; sets the samples fed per tick (default: 60)",
    )

    parser.add_argument("--channels", type=int, default=None, help="Input channels for --live (default: 1)")
    parser.add_argument("--fetch-size", type=int, default=None, help="Frames per device callback for --live (default: 512)")
    parser.add_argument("--sample-count", type=int, default=None, help="Retained history (default: 8192)")
    parser.add_argument("--bin-count", type=int, default=None, help="Frequency bins (default: 256)")
    parser.add_argument("--sample-rate", type=int, default=None, help="Sample rate in Hz (default: 48000)")
    parser.add_argument("--focus", type=float, default=None, help="Display centre in the history, 0-1 (default: 0.5)")
    parser.add_argument("--taper", type=float, default=None, help="Taper shape constant (default: 10.0)")

    parser.add_argument("--width", type=int, default=120, help="Columns (default: 120)")
    parser.add_argument("--height", type=int, default=24, help="Waveform rows (default: 24)")

    parser.add_argument(
        "-o", "--export",
        type=Path,
        default=None,
        help="Write per-frame snapshots to this JSON manifest",
    )

    parser.add_argument("-q", "--quiet", action="store_true", help="Do not draw frames")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.fps <= 0:
        print(f"Error: fps must be positive, got {args.fps}", file=sys.stderr)
        sys.exit(1)

    try:
        config = AnalyzerConfig().with_overrides(
            channels=args.channels,
            fetch_buffer_size=args.fetch_size,
            sample_count=args.sample_count,
            bin_count=args.bin_count,
            sample_rate=args.sample_rate,
            focus=args.focus,
            taper_shape=args.taper,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    chunk_size = max(1, config.sample_rate // args.fps)
    frames = args.frames

    if args.live:
        device = args.device
        if device is not None and device.isdigit():
            device = int(device)
        source = DeviceStream.from_config(config, device=device)
        if frames is None:
            frames = 600
    elif args.tone is not None:
        source = ToneStream(
            args.tone,
            sample_rate=config.sample_rate,
            chunk_size=chunk_size,
            waveform=args.waveform,
        )
        if frames is None:
            frames = 300
    elif args.audio is None:
        parser.error("one of an audio file, --tone or --live is required")
    elif not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)
    else:
        source = ArrayStream.from_file(args.audio, config.sample_rate, chunk_size)
        print(f"Loaded {args.audio} ({source.duration:.2f}s)", flush=True)

    engine = AudioEngine(config, source)
    timer = FrameTimer()

    if args.live:
        try:
            source.start()
        except RuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        snapshots = run_scope(
            engine,
            frames=frames,
            draw=None if args.quiet else _terminal_draw,
            width=args.width,
            height=args.height,
            timer=timer,
            frame_interval=1.0 / args.fps if args.live else None,
        )
    finally:
        if args.live:
            source.close()

    if timer.frame_times:
        print(timer.format_results(), flush=True)

    if args.export is not None:
        path = ManifestExporter().export_json(snapshots, args.fps, config.sample_rate, args.export)
        print(f"Wrote {len(snapshots)} frames to {path}", flush=True)


if __name__ == "__main__":
    main()
