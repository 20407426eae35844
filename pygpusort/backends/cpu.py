"""
CPU backend for PyGPUSort.

Evaluates the rank-sort formula with NumPy on the host.
Useful for testing and development without GPU.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from pygpusort.backends.base import Backend, BackendType
from pygpusort.core.sorter import prepare_input

if TYPE_CHECKING:
    from numpy.typing import NDArray


DEFAULT_CHUNK_SIZE = 1024


def rank_positions(values: NDArray[Any], chunk_size: int = DEFAULT_CHUNK_SIZE) -> NDArray[np.intp]:
    """
    Compute rank(i) for every index, exactly as the device kernel does.

    rank(i) = |{j : v[j] < v[i]}| + |{j < i : v[j] == v[i]}|

    Rows are processed in chunks to bound the N x chunk comparison matrix.
    """
    n = values.size
    indices = np.arange(n)
    ranks = np.empty(n, dtype=np.intp)

    for start in range(0, n, chunk_size):
        stop = min(start + chunk_size, n)
        block = values[start:stop, None]
        less = (values[None, :] < block).sum(axis=1)
        ties = ((values[None, :] == block) & (indices[None, :] < indices[start:stop, None])).sum(
            axis=1
        )
        ranks[start:stop] = less + ties

    return ranks


def rank_sort_cpu(values: NDArray[Any], chunk_size: int = DEFAULT_CHUNK_SIZE) -> NDArray[Any]:
    """
    Scatter each value to its rank.

    The output starts zero-filled like a fresh device buffer; with finite
    inputs every slot is written exactly once.

    Args:
        values: 1-D input array.
        chunk_size: Rows compared per step.

    Returns:
        Sorted copy of values.
    """
    out = np.zeros_like(values)
    if values.size:
        out[rank_positions(values, chunk_size)] = values
    return out


class CPUBackend(Backend):
    """
    CPU backend implementation.

    Runs the same stable rank sort as the GPU kernel using NumPy.
    Provides full API compatibility for testing without GPU.

    Example:
        >>> backend = CPUBackend()
        >>> result = await backend.sort(np.array([3, 1, 2], dtype=np.uint32))
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """
        Initialize the CPU backend.

        Args:
            chunk_size: Rows compared per step of the rank computation.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._chunk_size = chunk_size

    @property
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        return BackendType.CPU

    @property
    def is_available(self) -> bool:
        """Check if this backend is available."""
        return True  # CPU is always available

    async def sort(self, values: Any, kind: Any = None) -> NDArray[Any]:
        """Sort on the host with the rank formula."""
        array, resolved = prepare_input(values, kind)
        if array.size == 0:
            return np.empty(0, dtype=resolved.dtype)
        return rank_sort_cpu(array, self._chunk_size)

    def __repr__(self) -> str:
        """String representation."""
        return f"CPUBackend(available=True, chunk_size={self._chunk_size})"
