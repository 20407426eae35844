"""
Backend implementations for PyGPUSort.
"""

from pygpusort.backends.base import Backend, BackendType, SortExecutionResult
from pygpusort.backends.cpu import CPUBackend, rank_sort_cpu
from pygpusort.backends.webgpu import WgpuBackend

__all__ = [
    "Backend",
    "BackendType",
    "SortExecutionResult",
    "CPUBackend",
    "WgpuBackend",
    "rank_sort_cpu",
]
