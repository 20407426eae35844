"""
Basic Sort Example for PyGPUSort.

Opens a session on the preferred adapter and sorts a few arrays.
Falls back to the CPU backend when no adapter is available.
"""

from __future__ import annotations

import asyncio

import numpy as np

from pygpusort import CPUBackend, DeviceSession, sort, sort_many
from pygpusort.exceptions import AdapterError


async def run_sort_example() -> None:
    """Run the basic sort example."""
    print("=" * 60)
    print("PyGPUSort Basic Sort Example")
    print("=" * 60)

    unsorted = [2, 5, 1, 7, 3, 3, 6, 8, 9, 4, 77, 33]

    try:
        session = await DeviceSession.open()
    except AdapterError as e:
        print(f"\nNo GPU adapter ({e}); using the CPU backend")
        result = await CPUBackend().sort(unsorted, "u32")
        print(f"   {unsorted} -> {result.tolist()}")
        return

    async with session:
        print(f"\n1. Session on {session.adapter_info}")

        print("\n2. Sorting u32...")
        result = await sort(session, unsorted, "u32")
        print(f"   {unsorted} -> {result.tolist()}")

        print("\n3. Sorting i32 with duplicates...")
        result = await sort(session, [-5, 3, -5, 0], "i32")
        print(f"   [-5, 3, -5, 0] -> {result.tolist()}")

        print("\n4. Sorting several f32 arrays concurrently...")
        rng = np.random.default_rng(7)
        batches = [rng.uniform(-1, 1, size=8).astype(np.float32) for _ in range(3)]
        for batch, sorted_batch in zip(batches, await sort_many(session, batches)):
            print(f"   {np.round(batch, 2).tolist()}")
            print(f"   -> {np.round(sorted_batch, 2).tolist()}")

        print(f"\n5. Jobs submitted: {session.jobs_submitted}")

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(run_sort_example())
