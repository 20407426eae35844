"""
Buffer layout planning.

Computes alignment-compliant buffer sizes for a sort job and builds
the zero-padded input bytes uploaded to the device.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pygpusort.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferLayout:
    """
    Byte layout shared by the input, output and readback buffers.

    Attributes:
        element_size: Width of one element in bytes.
        element_count: True number of elements (carried by the length buffer).
        alignment: Device minimum storage-buffer alignment in bytes.
        logical_size: element_size * element_count.
        padded_size: logical_size rounded up to a multiple of alignment.
    """

    element_size: int
    element_count: int
    alignment: int
    logical_size: int
    padded_size: int

    @property
    def padding_bytes(self) -> int:
        """Get the number of zero bytes appended after the data."""
        return self.padded_size - self.logical_size

    @property
    def is_empty(self) -> bool:
        """Check if the layout describes an empty job."""
        return self.element_count == 0


def plan_layout(element_size: int, element_count: int, alignment: int) -> BufferLayout:
    """
    Plan the buffer layout for a job.

    Args:
        element_size: Width of one element in bytes.
        element_count: Number of elements.
        alignment: Device minimum storage-buffer alignment in bytes.

    Returns:
        BufferLayout with logical and padded sizes.

    Raises:
        InvalidConfigurationError: If any argument is out of range.
    """
    if element_size < 1:
        raise InvalidConfigurationError("element_size", element_size, "must be >= 1")
    if element_count < 0:
        raise InvalidConfigurationError("element_count", element_count, "must be >= 0")
    if alignment < 1:
        raise InvalidConfigurationError("alignment", alignment, "must be >= 1")

    logical_size = element_size * element_count
    padded_size = -(-logical_size // alignment) * alignment

    layout = BufferLayout(
        element_size=element_size,
        element_count=element_count,
        alignment=alignment,
        logical_size=logical_size,
        padded_size=padded_size,
    )
    logger.debug(
        f"Planned layout: {element_count} x {element_size}B, "
        f"logical={logical_size}B padded={padded_size}B"
    )
    return layout


def pad_input(values: NDArray[np.generic], layout: BufferLayout) -> bytes:
    """
    Build the device input bytes: the raw values followed by zero padding.

    Args:
        values: Contiguous 1-D input array.
        layout: Layout planned for the same array.

    Returns:
        Byte string of exactly layout.padded_size bytes.
    """
    raw = values.tobytes()
    if len(raw) != layout.logical_size:
        raise InvalidConfigurationError(
            "values",
            f"{len(raw)} bytes",
            f"expected {layout.logical_size} bytes for this layout",
        )
    return raw + bytes(layout.padding_bytes)
