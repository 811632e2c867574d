"""
Phasescope analyzer benchmark.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default  — 8192/256, 16384/512 and 4096/128 analyzers, 5 timed runs
    --quick  — 2048/64 and 4096/128 analyzers, 3 timed runs (CI-friendly)

Output: construction, push and analyze timings printed to stdout. Each
analyze run follows one 60 fps tick of pushed samples, as in the live loop.
"""

import argparse
import os
import sys
import time
from typing import List

import numpy as np

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from phasescope.core.analyzer import SpectralAnalyzer

_SEP = "─" * 72
SAMPLE_RATE = 48000
FPS = 60


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _stats(times: List[float]) -> str:
    arr = np.array(times)
    return f"mean={arr.mean()*1000:.2f} ms  min={arr.min()*1000:.2f} ms  max={arr.max()*1000:.2f} ms"


def _bench(buffer_size: int, bin_count: int, runs: int) -> dict:
    t0 = time.perf_counter()
    analyzer = SpectralAnalyzer(buffer_size, bin_count, SAMPLE_RATE)
    construct = time.perf_counter() - t0

    rng = np.random.RandomState(0)
    analyzer.push_many(rng.uniform(-1.0, 1.0, buffer_size))

    tick = SAMPLE_RATE // FPS
    push_times, analyze_times = [], []
    for _ in range(runs):
        chunk = rng.uniform(-1.0, 1.0, tick)
        t0 = time.perf_counter()
        analyzer.push_many(chunk)
        push_times.append(time.perf_counter() - t0)

        t0 = time.perf_counter()
        analyzer.analyze()
        analyze_times.append(time.perf_counter() - t0)

    taps = sum(b.window_length for b in analyzer.basis)
    return {
        "construct": construct,
        "push": push_times,
        "analyze": analyze_times,
        "taps": taps,
        "per_sample_us": np.mean(push_times) / tick * 1e6,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Phasescope analyzer benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Use small analyzers and fewer runs for fast CI runs",
    )
    args = parser.parse_args()

    if args.quick:
        sizes = [(2048, 64), (4096, 128)]
        runs = 3
    else:
        sizes = [(4096, 128), (8192, 256), (16384, 512)]
        runs = 5

    print(f"\nPhasescope Analyzer Benchmark  —  {SAMPLE_RATE} Hz, {FPS} fps ticks")
    print(f"Timed runs: {runs}")

    results = {}
    for buffer_size, bin_count in sizes:
        label = f"{buffer_size}/{bin_count}"
        _hdr(f"buffer={buffer_size}  bins={bin_count}")
        r = _bench(buffer_size, bin_count, runs)
        results[label] = r
        print(f"  construct:  {r['construct']*1000:.1f} ms  ({r['taps']} basis taps)")
        print(f"  push tick:  {_stats(r['push'])}  ({r['per_sample_us']:.2f} µs/sample)")
        print(f"  analyze:    {_stats(r['analyze'])}")

    _hdr("Summary")
    name_w = max(len(k) for k in results) + 2
    print(f"  {'Analyzer':<{name_w}} analyze (ms, mean)  frame budget used")
    print(f"  {'-'*name_w} ------------------  -----------------")
    budget = 1.0 / FPS
    for name, r in results.items():
        mean = np.mean(r["analyze"]) + np.mean(r["push"])
        print(f"  {name:<{name_w}} {np.mean(r['analyze'])*1000:18.2f}  {mean / budget * 100:16.1f}%")

    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()
