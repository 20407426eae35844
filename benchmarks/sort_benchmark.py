"""
Rank-Sort Benchmark

Sorts many random rows concurrently on one device session and compares
against the NumPy rank sort on the host.

Workload (defaults): 1000 rows of 1000 uint32 values drawn from [0, 1000).
Reported times:
- Total: session creation plus all sorts
- Sort: all sorts, from first submission to last readback
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import dataclass

import numpy as np

from pygpusort import CPUBackend, DeviceSession, SessionConfig, sort_many
from pygpusort.exceptions import AdapterError, DeviceError


@dataclass
class SortBenchmarkConfig:
    """Configuration for the sort benchmark."""

    rows: int = 1000
    row_length: int = 1000
    max_value: int = 1000
    kind: str = "u32"
    cpu_rows: int = 50
    seed: int = 42


@dataclass
class SortBenchmarkResult:
    """Result of one benchmark run."""

    implementation: str
    rows: int
    row_length: int
    total_time: float
    sort_time: float
    correct: bool

    @property
    def elements_per_sec(self) -> float:
        """Sorted elements per second of sort time."""
        if self.sort_time <= 0:
            return 0.0
        return self.rows * self.row_length / self.sort_time


def format_time(seconds: float) -> str:
    """Format time with appropriate units."""
    if seconds < 0.001:
        return f"{seconds*1_000_000:.1f}us"
    if seconds < 1:
        return f"{seconds*1000:.2f}ms"
    return f"{seconds:.3f}s"


def generate_rows(config: SortBenchmarkConfig, count: int) -> list[np.ndarray]:
    """Generate random rows for the configured kind."""
    rng = np.random.default_rng(config.seed)
    if config.kind == "f32":
        return [
            rng.uniform(0.0, config.max_value, size=config.row_length).astype(np.float32)
            for _ in range(count)
        ]
    dtype = np.uint32 if config.kind == "u32" else np.int32
    return [
        rng.integers(0, config.max_value, size=config.row_length).astype(dtype)
        for _ in range(count)
    ]


def check_sorted(rows: list[np.ndarray], results: list[np.ndarray]) -> bool:
    """Check every result equals NumPy's sort of its row."""
    return all(np.array_equal(np.sort(row), result) for row, result in zip(rows, results))


async def benchmark_gpu(config: SortBenchmarkConfig) -> SortBenchmarkResult:
    """Time session creation and concurrent sorting on the preferred adapter."""
    rows = generate_rows(config, config.rows)

    begin = time.perf_counter()
    async with await DeviceSession.open(SessionConfig(label="sort-benchmark")) as session:
        print(f"  Adapter: {session.adapter_info}")
        start = time.perf_counter()
        results = await sort_many(session, rows)
        sort_time = time.perf_counter() - start
    total_time = time.perf_counter() - begin

    return SortBenchmarkResult(
        implementation="wgpu",
        rows=config.rows,
        row_length=config.row_length,
        total_time=total_time,
        sort_time=sort_time,
        correct=check_sorted(rows, results),
    )


async def benchmark_cpu(config: SortBenchmarkConfig) -> SortBenchmarkResult:
    """Time the host rank sort on a subset of rows."""
    rows = generate_rows(config, config.cpu_rows)
    backend = CPUBackend()

    start = time.perf_counter()
    results = [await backend.sort(row) for row in rows]
    sort_time = time.perf_counter() - start

    return SortBenchmarkResult(
        implementation="numpy rank sort",
        rows=config.cpu_rows,
        row_length=config.row_length,
        total_time=sort_time,
        sort_time=sort_time,
        correct=check_sorted(rows, results),
    )


def print_result(result: SortBenchmarkResult) -> None:
    """Print one result line block."""
    print(f"\n{result.implementation}:")
    print(f"  Rows:        {result.rows} x {result.row_length}")
    print(f"  Total time:  {format_time(result.total_time)}")
    print(f"  Sort time:   {format_time(result.sort_time)}")
    print(f"  Throughput:  {result.elements_per_sec:,.0f} elements/s")
    print(f"  Correct:     {'✓' if result.correct else '✗'}")


def parse_args() -> SortBenchmarkConfig:
    """Parse command-line options into a config."""
    defaults = SortBenchmarkConfig()
    parser = argparse.ArgumentParser(description="Benchmark the wgpu rank sort")
    parser.add_argument("--rows", type=int, default=defaults.rows)
    parser.add_argument("--row-length", type=int, default=defaults.row_length)
    parser.add_argument("--max-value", type=int, default=defaults.max_value)
    parser.add_argument("--kind", choices=["f32", "u32", "i32"], default=defaults.kind)
    parser.add_argument("--cpu-rows", type=int, default=defaults.cpu_rows)
    parser.add_argument("--seed", type=int, default=defaults.seed)
    args = parser.parse_args()
    return SortBenchmarkConfig(
        rows=args.rows,
        row_length=args.row_length,
        max_value=args.max_value,
        kind=args.kind,
        cpu_rows=args.cpu_rows,
        seed=args.seed,
    )


async def main() -> None:
    """Run the benchmark."""
    config = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("PyGPUSort Rank-Sort Benchmark")
    print("=" * 60)

    print_result(await benchmark_cpu(config))

    try:
        gpu_result = await benchmark_gpu(config)
    except (AdapterError, DeviceError) as e:
        print(f"\nwgpu: skipped ({e})")
        return
    print_result(gpu_result)


if __name__ == "__main__":
    asyncio.run(main())
