"""
Dispatch of the rank-sort kernel.

Allocates the per-job buffer set, binds it to the compiled pipeline
and submits the compute pass together with the readback copy.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import wgpu

from pygpusort.compilation.kernels import (
    INPUT_BINDING,
    LENGTH_BINDING,
    OUTPUT_BINDING,
    workgroup_count,
)
from pygpusort.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    from pygpusort.compilation.compiler import CompiledKernel
    from pygpusort.core.job import SortJob
    from pygpusort.core.session import DeviceSession


logger = logging.getLogger(__name__)


@dataclass
class JobBuffers:
    """The four job-private device buffers."""

    input: Any
    length: Any
    output: Any
    readback: Any

    def release(self, *, keep_readback: bool = False) -> None:
        """
        Destroy the device buffers.

        Args:
            keep_readback: Leave the readback buffer to its ReadbackChannel.
        """
        buffers = [self.input, self.length, self.output]
        if not keep_readback:
            buffers.append(self.readback)
        for buffer in buffers:
            # Teardown continues past a buffer the device already lost
            with contextlib.suppress(Exception):
                buffer.destroy()


def allocate_buffers(session: DeviceSession, job: SortJob, padded_input: bytes) -> JobBuffers:
    """
    Create the input, length, output and readback buffers for a job.

    Args:
        session: Device session.
        job: Job whose layout sizes the buffers.
        padded_input: Input bytes including zero padding.

    Returns:
        JobBuffers holding the four buffers.
    """
    device = session.device
    layout = job.layout

    if layout.padded_size > session.max_storage_binding_size:
        raise InvalidConfigurationError(
            "element_count",
            layout.element_count,
            f"padded size {layout.padded_size}B exceeds the device storage binding limit "
            f"of {session.max_storage_binding_size}B",
        )

    input_buffer = device.create_buffer_with_data(
        label=f"{job.label} input",
        data=padded_input,
        usage=wgpu.BufferUsage.STORAGE,
    )
    length_buffer = device.create_buffer_with_data(
        label=f"{job.label} length",
        data=np.array([layout.element_count], dtype=np.uint32).tobytes(),
        usage=wgpu.BufferUsage.STORAGE,
    )
    output_buffer = device.create_buffer(
        label=f"{job.label} output",
        size=layout.padded_size,
        usage=wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC,
    )
    readback_buffer = device.create_buffer(
        label=f"{job.label} readback",
        size=layout.padded_size,
        usage=wgpu.BufferUsage.MAP_READ | wgpu.BufferUsage.COPY_DST,
    )
    return JobBuffers(
        input=input_buffer,
        length=length_buffer,
        output=output_buffer,
        readback=readback_buffer,
    )


def _binding(binding: int, buffer: Any) -> dict[str, Any]:
    return {
        "binding": binding,
        "resource": {"buffer": buffer, "offset": 0, "size": buffer.size},
    }


def encode_dispatch(
    session: DeviceSession,
    job: SortJob,
    kernel: CompiledKernel,
    buffers: JobBuffers,
) -> Any:
    """
    Begin a command encoder holding the job's compute pass.

    Returns:
        The command encoder, ready for the readback copy.

    Raises:
        InvalidConfigurationError: If the job needs more workgroups than the
            device allows in one dimension.
    """
    groups = workgroup_count(job.length, kernel.workgroup_size)
    if groups > session.max_workgroups_per_dimension:
        raise InvalidConfigurationError(
            "element_count",
            job.length,
            f"needs {groups} workgroups, device allows {session.max_workgroups_per_dimension}",
        )

    device = session.device
    bind_group = device.create_bind_group(
        label=f"{job.label} bind group",
        layout=kernel.bind_group_layout,
        entries=[
            _binding(INPUT_BINDING, buffers.input),
            _binding(OUTPUT_BINDING, buffers.output),
            _binding(LENGTH_BINDING, buffers.length),
        ],
    )

    encoder = device.create_command_encoder(label=f"{job.label} encoder")
    compute_pass = encoder.begin_compute_pass(label=f"{job.label} compute pass")
    compute_pass.set_pipeline(kernel.pipeline)
    compute_pass.set_bind_group(0, bind_group)
    compute_pass.dispatch_workgroups(groups, 1, 1)
    compute_pass.end()

    logger.debug(f"Encoded {kernel.name} for job {job.label}: {groups} workgroups")
    return encoder


def encode_copy_and_submit(
    session: DeviceSession,
    job: SortJob,
    encoder: Any,
    buffers: JobBuffers,
) -> None:
    """
    Append the output-to-readback copy and submit the batch.

    Dispatch and copy share one command buffer, so the copy observes the
    kernel's writes.
    """
    encoder.copy_buffer_to_buffer(
        buffers.output, 0, buffers.readback, 0, job.layout.padded_size
    )
    session.queue.submit([encoder.finish()])
    session.record_submission()
