"""
Sort entry points.

Resolves the element kind at the call boundary, then drives one
SortJob through layout planning, dispatch and readback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from pygpusort.core.dispatch import allocate_buffers, encode_copy_and_submit, encode_dispatch
from pygpusort.core.element_kind import ElementKind
from pygpusort.core.job import JobState, SortJob
from pygpusort.core.layout import pad_input, plan_layout
from pygpusort.core.readback import ReadbackChannel
from pygpusort.exceptions import ElementTypeMismatchError, InvalidInputError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from pygpusort.core.dispatch import JobBuffers
    from pygpusort.core.session import DeviceSession


logger = logging.getLogger(__name__)


def convert_sequence(values: Any, kind: ElementKind) -> NDArray[Any]:
    """
    Convert a sequence of numbers to kind's dtype without changing any value.

    Integer kinds accept only integral values inside the kind's range.
    f32 rounds to the nearest representable value but rejects finite
    values that would overflow to infinity.

    Raises:
        InvalidInputError: If the conversion would alter the input.
    """
    try:
        source = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"cannot convert input to {kind}: {e}") from e

    if source.dtype.kind not in "biuf":
        raise InvalidInputError(f"cannot convert {source.dtype} input to {kind}")
    if source.size == 0:
        return source.astype(kind.dtype)

    if kind is ElementKind.FLOAT32:
        with np.errstate(over="ignore"):
            converted = source.astype(kind.dtype)
        if np.any(np.isinf(converted) & np.isfinite(source)):
            raise InvalidInputError(f"values overflow the {kind} range")
        return converted

    info = np.iinfo(kind.dtype)
    if source.dtype.kind == "f" and not np.all(
        np.isfinite(source) & (source == np.trunc(source))
    ):
        raise InvalidInputError(f"non-integral values cannot be converted to {kind}")
    if source.min() < info.min or source.max() > info.max:
        raise InvalidInputError(f"values outside the {kind} range [{info.min}, {info.max}]")
    return source.astype(kind.dtype)


def prepare_input(values: Any, kind: Any = None) -> tuple[NDArray[Any], ElementKind]:
    """
    Validate the input and resolve its element kind.

    Args:
        values: 1-D NumPy array or sequence of numbers.
        kind: Element kind spec; inferred from an ndarray's dtype when None.

    Returns:
        Read-only contiguous view of the input and its kind.

    Raises:
        UnsupportedElementKindError: If the kind is not f32, u32 or i32.
        ElementTypeMismatchError: If an ndarray's dtype disagrees with kind.
        InvalidInputError: If the input is not a flat array of numbers, or if
            converting a sequence to kind would change a value.
    """
    if kind is None:
        array = np.asarray(values)
        resolved = ElementKind.from_dtype(array.dtype)
    else:
        resolved = ElementKind.resolve(kind)
        if isinstance(values, np.ndarray):
            if values.dtype != resolved.dtype:
                raise ElementTypeMismatchError(resolved.wgsl_type, str(values.dtype))
            array = values
        else:
            array = convert_sequence(values, resolved)

    if array.ndim != 1:
        raise InvalidInputError(f"expected a flat 1-D array, got shape {array.shape}")

    view = np.ascontiguousarray(array).view()
    view.flags.writeable = False
    return view, resolved


async def sort(session: DeviceSession, values: Any, kind: Any = None) -> NDArray[Any]:
    """
    Sort a flat numeric array on the session's device.

    The result is ascending and stable: equal values keep their original
    relative order. NaN ordering is unspecified.

    Args:
        session: Open device session.
        values: 1-D NumPy array or sequence of numbers.
        kind: ElementKind, WGSL token or dtype; inferred from an ndarray when None.

    Returns:
        New array of the same length and kind as the input.

    Raises:
        UnsupportedElementKindError: Before any device interaction.
        SessionClosedError: If the session was closed.
        MapFailureError: If the result could not be mapped.
    """
    array, resolved = prepare_input(values, kind)
    if array.size == 0:
        return np.empty(0, dtype=resolved.dtype)

    session.ensure_open()
    layout = plan_layout(resolved.itemsize, int(array.size), session.storage_alignment)
    job = SortJob(values=array, kind=resolved, layout=layout)
    return await run_job(session, job)


async def run_job(session: DeviceSession, job: SortJob) -> NDArray[Any]:
    """
    Drive one job from CREATED to COMPLETED.

    Buffers are released whether the job completes or fails; a failed
    job moves to FAILED and its error propagates unchanged.
    """
    buffers: JobBuffers | None = None
    channel: ReadbackChannel | None = None

    try:
        kernel = session.compiler.compile(job.kind)
        buffers = allocate_buffers(session, job, pad_input(job.values, job.layout))
        job.advance(JobState.BUFFERS_ALLOCATED)

        encoder = encode_dispatch(session, job, kernel, buffers)
        job.advance(JobState.DISPATCHED)

        encode_copy_and_submit(session, job, encoder, buffers)
        job.advance(JobState.COPYING)

        channel = ReadbackChannel(buffers.readback, job.layout, job.kind, job.label)
        channel.request_map()
        job.advance(JobState.AWAITING_MAP)

        await channel.wait()
        job.advance(JobState.MAPPED)

        result = channel.copy_out()
        job.advance(JobState.COMPLETED)
    except BaseException as e:
        if not job.state.is_terminal:
            job.fail(e)
        logger.debug(f"Job {job.label} failed in {job.history[-2].name}: {e!r}")
        raise
    finally:
        if channel is not None:
            channel.release()
        if buffers is not None:
            buffers.release(keep_readback=channel is not None)

    logger.debug(f"Job {job.label} sorted {job.length} x {job.kind} in {job.duration_ms:.2f}ms")
    return result


def sort_sync(session: DeviceSession, values: Any, kind: Any = None) -> NDArray[Any]:
    """Blocking variant of sort(); must not be called from a running event loop."""
    return asyncio.run(sort(session, values, kind))


async def sort_many(
    session: DeviceSession,
    batches: Iterable[Any],
    kind: Any = None,
) -> list[NDArray[Any]]:
    """
    Sort several arrays concurrently on one session.

    All jobs are encoded and submitted before any readback completes;
    results are returned in input order.
    """
    jobs: Sequence[Any] = [sort(session, batch, kind) for batch in batches]
    return list(await asyncio.gather(*jobs))
