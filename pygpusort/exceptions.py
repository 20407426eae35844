"""
PyGPUSort exception hierarchy.

This module defines the complete exception hierarchy for PyGPUSort,
providing specific exception types for different error categories:

- AdapterError: Compute adapter discovery issues
- DeviceError: Device/queue session creation and use
- ValidationError: Element kind, input and configuration validation
- CompilationError: Rank-sort kernel compilation failures
- ReadbackError: Host mapping of device results
- JobError: Sort job lifecycle violations

All exceptions inherit from PyGPUSortError for easy catching.
"""

from __future__ import annotations


class PyGPUSortError(Exception):
    """Base exception for all PyGPUSort errors."""

    pass


class AdapterError(PyGPUSortError):
    """Base exception for adapter-related errors."""

    pass


class NoAdapterFoundError(AdapterError):
    """Raised when no compute adapter can be discovered."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        msg = "No compute adapter found."
        if reason:
            msg += f" {reason}"
        super().__init__(msg)


class DeviceError(PyGPUSortError):
    """Base exception for device-related errors."""

    pass


class DeviceRequestFailedError(DeviceError):
    """Raised when the driver refuses to create a device and queue."""

    def __init__(self, adapter_name: str, cause: Exception) -> None:
        self.adapter_name = adapter_name
        self.cause = cause
        super().__init__(f"Failed to request device from adapter '{adapter_name}': {cause}")


class SessionClosedError(DeviceError):
    """Raised when a closed device session is used."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Device session '{label}' is closed")


class ValidationError(PyGPUSortError):
    """Base exception for validation-related errors."""

    pass


class UnsupportedElementKindError(ValidationError):
    """Raised when sorting is requested for a type outside float32/uint32/int32."""

    def __init__(self, requested: object) -> None:
        self.requested = requested
        super().__init__(
            f"Unsupported element kind {requested!r}. Supported kinds: f32, u32, i32"
        )


class ElementTypeMismatchError(ValidationError):
    """Raised when an input array's dtype disagrees with the requested kind."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Type mismatch: kind expects {expected}, input has dtype {actual}")


class InvalidInputError(ValidationError):
    """Raised when the input cannot be sorted as a flat array."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid sort input: {reason}")


class InvalidConfigurationError(ValidationError):
    """Raised when configuration is invalid."""

    def __init__(self, parameter: str, value: object, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration: {parameter}={value!r} - {reason}")


class CompilationError(PyGPUSortError):
    """Base exception for compilation-related errors."""

    pass


class KernelCompilationError(CompilationError):
    """Raised when the rank-sort shader fails to compile."""

    def __init__(self, kernel_name: str, cause: Exception) -> None:
        self.kernel_name = kernel_name
        self.cause = cause
        super().__init__(f"Failed to compile kernel '{kernel_name}': {cause}")


class ReadbackError(PyGPUSortError):
    """Base exception for readback-related errors."""

    pass


class MapFailureError(ReadbackError):
    """Raised when the host cannot map the readback buffer."""

    def __init__(self, job_id: str, cause: Exception | None = None) -> None:
        self.job_id = job_id
        self.cause = cause
        msg = f"Failed to map readback buffer for job '{job_id}'"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class ReadbackStateError(ReadbackError):
    """Raised when a readback step is repeated or taken out of order."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid readback state: {reason}")


class JobError(PyGPUSortError):
    """Base exception for sort job errors."""

    pass


class JobStateError(JobError):
    """Raised when a sort job transition is invalid for the current state."""

    def __init__(self, job_id: str, current_state: str, target_state: str) -> None:
        self.job_id = job_id
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Cannot move job '{job_id}' from state '{current_state}' to '{target_state}'"
        )
