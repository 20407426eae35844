"""
PyGPUSort - stable rank sort of numeric arrays on WebGPU compute devices.

Sorts flat float32, uint32 and int32 arrays by computing every element's
final position in parallel on the GPU through wgpu.

Core Features:
    - Adapter Selection: Prefers discrete, then integrated GPUs, then any adapter
    - Device Sessions: One device/queue pair reused across many sorts
    - Aligned Buffers: Zero-padded uploads that never leak into results
    - Rank-Sort Kernel: Synchronization-free O(N^2) stable sort in WGSL
    - Async Readback: Single-resolution map completion, no busy polling
    - CPU Reference: The same rank formula evaluated with NumPy

Quick Start:
    >>> import asyncio
    >>> from pygpusort import DeviceSession, sort
    >>>
    >>> async def main():
    ...     async with await DeviceSession.open() as session:
    ...         return await sort(session, [2, 5, 1, 7, 3, 3], "u32")
    ...
    >>> asyncio.run(main())
    array([1, 2, 3, 3, 5, 7], dtype=uint32)
"""

from pygpusort.backends.cpu import CPUBackend
from pygpusort.backends.webgpu import WgpuBackend
from pygpusort.core.accelerator import AdapterSelector, select_adapter
from pygpusort.core.element_kind import ElementKind
from pygpusort.core.job import JobState, SortJob
from pygpusort.core.layout import BufferLayout, plan_layout
from pygpusort.core.session import DeviceSession, SessionConfig
from pygpusort.core.sorter import sort, sort_many, sort_sync

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "AdapterSelector",
    "select_adapter",
    "DeviceSession",
    "SessionConfig",
    "ElementKind",
    "BufferLayout",
    "plan_layout",
    "SortJob",
    "JobState",
    # Sorting
    "sort",
    "sort_many",
    "sort_sync",
    # Backends
    "CPUBackend",
    "WgpuBackend",
]
