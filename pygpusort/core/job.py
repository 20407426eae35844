"""
Sort job record and lifecycle.

Provides the state machine for one sort call:
CREATED → BUFFERS_ALLOCATED → DISPATCHED → COPYING → AWAITING_MAP → MAPPED → COMPLETED

Any non-terminal state may move to FAILED. There is no retry transition.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pygpusort.exceptions import JobStateError

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from pygpusort.core.element_kind import ElementKind
    from pygpusort.core.layout import BufferLayout


class JobState(Enum):
    """State of a sort job."""

    CREATED = auto()
    BUFFERS_ALLOCATED = auto()
    DISPATCHED = auto()
    COPYING = auto()
    AWAITING_MAP = auto()
    MAPPED = auto()
    COMPLETED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are allowed."""
        return self in (JobState.COMPLETED, JobState.FAILED)


_NEXT_STATE = {
    JobState.CREATED: JobState.BUFFERS_ALLOCATED,
    JobState.BUFFERS_ALLOCATED: JobState.DISPATCHED,
    JobState.DISPATCHED: JobState.COPYING,
    JobState.COPYING: JobState.AWAITING_MAP,
    JobState.AWAITING_MAP: JobState.MAPPED,
    JobState.MAPPED: JobState.COMPLETED,
}


@dataclass
class SortJob:
    """
    Record of one sort call.

    Holds a read-only view of the input, its kind and logical length,
    and the job's progress through the lifecycle.
    """

    values: NDArray[np.generic]
    kind: ElementKind
    layout: BufferLayout
    job_id: UUID = field(default_factory=uuid4)
    state: JobState = JobState.CREATED
    created_time: float = field(default_factory=time.perf_counter)
    end_time: float = 0.0
    error: BaseException | None = None
    history: list[JobState] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.values.flags.writeable = False
        self.history.append(self.state)

    @property
    def length(self) -> int:
        """Get the logical element count."""
        return self.layout.element_count

    @property
    def label(self) -> str:
        """Get a short label for device object names."""
        return f"sort-{str(self.job_id)[:8]}"

    @property
    def duration_ms(self) -> float:
        """Get the job duration in milliseconds (0 until terminal)."""
        if not self.end_time:
            return 0.0
        return (self.end_time - self.created_time) * 1000

    def advance(self, target: JobState) -> None:
        """
        Move to the next lifecycle state.

        Args:
            target: Expected next state; skipping states is rejected.

        Raises:
            JobStateError: If target is not the direct successor.
        """
        if _NEXT_STATE.get(self.state) is not target:
            raise JobStateError(str(self.job_id), self.state.name, target.name)
        self.state = target
        self.history.append(target)
        if target.is_terminal:
            self.end_time = time.perf_counter()

    def fail(self, error: BaseException) -> None:
        """
        Move to the terminal FAILED state.

        Raises:
            JobStateError: If the job is already terminal.
        """
        if self.state.is_terminal:
            raise JobStateError(str(self.job_id), self.state.name, JobState.FAILED.name)
        self.error = error
        self.state = JobState.FAILED
        self.history.append(JobState.FAILED)
        self.end_time = time.perf_counter()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SortJob(id={self.label}, kind={self.kind}, "
            f"length={self.length}, state={self.state.name})"
        )
