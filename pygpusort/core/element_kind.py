"""
Element kinds supported by the rank-sort kernel.

The set is closed: every value that reaches device code is one of
the three members below, resolved once at the call boundary.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

from pygpusort.exceptions import UnsupportedElementKindError


class ElementKind(Enum):
    """Numeric kind of the elements being sorted."""

    FLOAT32 = "f32"
    UINT32 = "u32"
    INT32 = "i32"

    @property
    def wgsl_type(self) -> str:
        """Get the WGSL scalar type token (e.g. 'u32')."""
        return self.value

    @property
    def dtype(self) -> np.dtype:
        """Get the matching NumPy dtype."""
        return np.dtype(_DTYPES[self])

    @property
    def itemsize(self) -> int:
        """Get the element width in bytes."""
        return self.dtype.itemsize

    @classmethod
    def from_dtype(cls, dtype: object) -> ElementKind:
        """
        Map a NumPy dtype (or anything np.dtype accepts) to a kind.

        Args:
            dtype: dtype, dtype name or scalar type.

        Returns:
            The matching ElementKind.

        Raises:
            UnsupportedElementKindError: If the dtype is not float32, uint32 or int32.
        """
        try:
            resolved = np.dtype(dtype)  # type: ignore[call-overload]
        except (TypeError, ValueError) as e:
            raise UnsupportedElementKindError(dtype) from e

        for kind, scalar in _DTYPES.items():
            if resolved == np.dtype(scalar):
                return kind
        raise UnsupportedElementKindError(dtype)

    @classmethod
    def resolve(cls, requested: object) -> ElementKind:
        """
        Resolve a user-supplied kind specification.

        Accepts an ElementKind, a WGSL token ('f32', 'u32', 'i32'),
        or anything accepted by from_dtype.

        Raises:
            UnsupportedElementKindError: For anything else.
        """
        if isinstance(requested, ElementKind):
            return requested
        if isinstance(requested, str):
            token = requested.strip().lower()
            for kind in cls:
                if kind.value == token:
                    return kind
        # Python int/float would silently widen to 64-bit dtypes
        if requested is int or requested is float or requested is bool:
            raise UnsupportedElementKindError(requested)
        return cls.from_dtype(requested)

    def __str__(self) -> str:
        return self.value


_DTYPES: dict[ElementKind, type[np.generic]] = {
    ElementKind.FLOAT32: np.float32,
    ElementKind.UINT32: np.uint32,
    ElementKind.INT32: np.int32,
}
