"""
WebGPU backend for PyGPUSort.

Runs the rank-sort kernel through wgpu on a caller-owned DeviceSession.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pygpusort.backends.base import Backend, BackendType
from pygpusort.core.sorter import sort

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from pygpusort.core.session import DeviceSession


class WgpuBackend(Backend):
    """
    wgpu backend implementation.

    The backend does not own the session; closing it is the caller's job.

    Example:
        >>> session = await DeviceSession.open()
        >>> backend = WgpuBackend(session)
        >>> result = await backend.sort([3, 1, 2], "u32")
    """

    def __init__(self, session: DeviceSession) -> None:
        """
        Initialize the backend.

        Args:
            session: Open device session shared by all sorts.
        """
        self._session = session

    @property
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        return BackendType.WGPU

    @property
    def is_available(self) -> bool:
        """Check if the session is still open."""
        return not self._session.is_closed

    @property
    def session(self) -> DeviceSession:
        """Get the device session."""
        return self._session

    async def sort(self, values: Any, kind: Any = None) -> NDArray[Any]:
        """Sort on the session's device."""
        return await sort(self._session, values, kind)

    def __repr__(self) -> str:
        """String representation."""
        return f"WgpuBackend(session={self._session!r})"
