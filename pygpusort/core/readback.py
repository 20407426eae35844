"""
Readback of sorted results into host memory.

The readback buffer is mapped asynchronously. Completion is delivered
through a single-resolution MapCompletion; the caller suspends on it
instead of polling.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import numpy as np
import wgpu

from pygpusort.exceptions import MapFailureError, ReadbackStateError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from pygpusort.core.element_kind import ElementKind
    from pygpusort.core.layout import BufferLayout


logger = logging.getLogger(__name__)


class MapCompletion:
    """
    Single-use completion signal for a host mapping request.

    Exactly one of resolve() or fail() may be called, and wait() may be
    awaited exactly once. Must be created inside a running event loop.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._observed = False

    @property
    def done(self) -> bool:
        """Check if the completion has been signaled."""
        return self._future.done()

    @property
    def observed(self) -> bool:
        """Check if the completion has been awaited."""
        return self._observed

    def resolve(self) -> None:
        """Signal a successful mapping."""
        if self._future.done():
            raise ReadbackStateError("completion already signaled")
        self._future.set_result(None)

    def fail(self, error: BaseException) -> None:
        """Signal a failed mapping."""
        if self._future.done():
            raise ReadbackStateError("completion already signaled")
        self._future.set_exception(error)

    async def wait(self) -> None:
        """
        Suspend until the completion is signaled.

        Cancelling the waiter leaves the completion pending, so the
        mapping request can still signal it once.

        Raises:
            ReadbackStateError: If awaited a second time.
            MapFailureError: If the mapping failed.
        """
        if self._observed:
            raise ReadbackStateError("completion already observed")
        self._observed = True
        await asyncio.shield(self._future)


class ReadbackChannel:
    """
    Host-side view of one job's readback buffer.

    Example:
        >>> channel = ReadbackChannel(readback_buffer, layout, kind, job.label)
        >>> channel.request_map()
        >>> await channel.wait()
        >>> values = channel.copy_out()
        >>> channel.release()
    """

    def __init__(
        self,
        buffer: Any,
        layout: BufferLayout,
        kind: ElementKind,
        job_id: str = "",
    ) -> None:
        """
        Initialize the channel.

        Args:
            buffer: MAP_READ | COPY_DST buffer of layout.padded_size bytes.
            layout: Layout of the job.
            kind: Element kind to reinterpret the bytes as.
            job_id: Job label used in errors.
        """
        self._buffer = buffer
        self._layout = layout
        self._kind = kind
        self._job_id = job_id
        self._completion: MapCompletion | None = None
        self._task: asyncio.Future[Any] | None = None
        self._mapped = False
        self._released = False

    @property
    def is_mapped(self) -> bool:
        """Check if the buffer is currently mapped."""
        return self._mapped

    @property
    def is_released(self) -> bool:
        """Check if the buffer has been released."""
        return self._released

    def request_map(self) -> MapCompletion:
        """
        Start mapping the buffer for reading.

        Returns:
            The completion that resolves when the mapping is ready.

        Raises:
            ReadbackStateError: If a mapping was already requested.
        """
        if self._completion is not None:
            raise ReadbackStateError("map already requested")

        completion = MapCompletion()
        self._completion = completion

        async def _map() -> None:
            await self._buffer.map_async(wgpu.MapMode.READ)

        def _on_done(task: asyncio.Future[Any]) -> None:
            if completion.done:
                return
            if task.cancelled():
                completion.fail(MapFailureError(self._job_id, asyncio.CancelledError()))
            elif task.exception() is not None:
                completion.fail(MapFailureError(self._job_id, task.exception()))
            else:
                completion.resolve()

        self._task = asyncio.ensure_future(_map())
        self._task.add_done_callback(_on_done)
        return completion

    async def wait(self) -> None:
        """
        Suspend until the mapping is ready.

        Raises:
            MapFailureError: If the host could not map the buffer.
        """
        completion = self._completion
        if completion is None:
            completion = self.request_map()
        await completion.wait()
        self._mapped = True

    def copy_out(self) -> NDArray[Any]:
        """
        Copy the logical bytes of the mapped range into a typed array.

        Padding bytes are sliced off before reinterpretation.

        Returns:
            Writable array of layout.element_count elements.
        """
        if not self._mapped:
            raise ReadbackStateError("buffer is not mapped")
        mapped = self._buffer.read_mapped()
        logical = memoryview(mapped).cast("B")[: self._layout.logical_size]
        return np.frombuffer(logical, dtype=self._kind.dtype).copy()

    @property
    def map_pending(self) -> bool:
        """Check if a mapping request is still in flight."""
        return self._task is not None and not self._task.done()

    def release(self) -> None:
        """
        Unmap and destroy the buffer. Safe to call more than once.

        While a mapping request is still in flight (the waiter was
        cancelled), destruction is deferred until the request settles.
        """
        if self._released:
            return
        self._released = True
        if self._task is not None and not self._task.done():
            self._task.add_done_callback(self._release_after_map)
            logger.debug(f"Deferred readback release for job {self._job_id} until map settles")
            return
        if self._mapped:
            self._buffer.unmap()
            self._mapped = False
        self._buffer.destroy()
        logger.debug(f"Released readback buffer for job {self._job_id}")

    def _release_after_map(self, task: asyncio.Future[Any]) -> None:
        if not task.cancelled() and task.exception() is None:
            self._buffer.unmap()
        self._mapped = False
        self._buffer.destroy()
        logger.debug(f"Released readback buffer for job {self._job_id}")

    async def read(self) -> NDArray[Any]:
        """Map, copy out and release in one call."""
        try:
            await self.wait()
            return self.copy_out()
        finally:
            self.release()
