"""
Backend base classes and interfaces.

Defines the abstract interface that all sort backends must implement.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pygpusort.exceptions import PyGPUSortError

if TYPE_CHECKING:
    from numpy.typing import NDArray


class BackendType(Enum):
    """Type of sort backend."""

    CPU = auto()
    WGPU = auto()


@dataclass
class SortExecutionResult:
    """Result of a backend sort execution."""

    success: bool
    execution_time_ms: float
    values: NDArray[Any] | None = None
    error: Exception | None = None


class Backend(ABC):
    """
    Abstract base class for sort backends.

    All backends compute the same stable rank sort, so results are
    interchangeable for finite inputs.
    """

    @property
    @abstractmethod
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if this backend is available."""
        ...

    @abstractmethod
    async def sort(self, values: Any, kind: Any = None) -> NDArray[Any]:
        """
        Sort a flat numeric array.

        Args:
            values: 1-D NumPy array or sequence of numbers.
            kind: Element kind spec; inferred from an ndarray when None.

        Returns:
            Sorted array of the same length and kind.
        """
        ...

    async def execute(self, values: Any, kind: Any = None) -> SortExecutionResult:
        """
        Sort and report timing, capturing PyGPUSort errors in the result.

        Args:
            values: 1-D NumPy array or sequence of numbers.
            kind: Element kind spec.

        Returns:
            Execution result; values is None when success is False.
        """
        start_time = time.perf_counter()

        try:
            result = await self.sort(values, kind)
        except PyGPUSortError as e:
            return SortExecutionResult(
                success=False,
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                error=e,
            )

        return SortExecutionResult(
            success=True,
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
            values=result,
        )
