"""
Device session: a device handle paired with its submission queue.

Device/queue creation is the most expensive one-time cost, so one
session is created per process (or per test) and passed by reference
into every sort call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pygpusort.compilation.compiler import KernelCompiler
from pygpusort.compilation.kernels import DEFAULT_WORKGROUP_SIZE
from pygpusort.core.accelerator import AdapterInfo, AdapterSelector
from pygpusort.exceptions import (
    DeviceRequestFailedError,
    InvalidConfigurationError,
    SessionClosedError,
)

logger = logging.getLogger(__name__)

# WebGPU defaults, used when a device does not report a limit
_DEFAULT_STORAGE_ALIGNMENT = 256
_DEFAULT_MAX_WORKGROUPS = 65535
_DEFAULT_MAX_STORAGE_BINDING = 128 * 1024 * 1024


@dataclass
class SessionConfig:
    """Configuration for a device session."""

    label: str = "pygpusort"
    workgroup_size: int = DEFAULT_WORKGROUP_SIZE
    cache_pipelines: bool = True
    required_limits: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.workgroup_size <= 256:
            raise InvalidConfigurationError(
                "workgroup_size", self.workgroup_size, "must be between 1 and 256"
            )
        if not self.label:
            raise InvalidConfigurationError("label", self.label, "must not be empty")


def _limit(limits: Mapping[str, Any], name: str, default: int) -> int:
    """Read a device limit, accepting hyphenated or snake_case keys."""
    for key in (name, name.replace("-", "_")):
        value = limits.get(key)
        if value is not None:
            return int(value)
    return default


class DeviceSession:
    """
    Long-lived pairing of a wgpu device and its queue.

    The session is exclusively owned by the caller. Sort jobs share it
    concurrently; queue submission is append-only, so no locking is needed.

    Example:
        >>> async with await DeviceSession.open() as session:
        ...     result = await sort(session, [3, 1, 2], "u32")
    """

    def __init__(
        self,
        adapter: Any,
        device: Any,
        config: SessionConfig | None = None,
    ) -> None:
        """
        Wrap an already-created device.

        Args:
            adapter: The wgpu adapter the device came from.
            device: The wgpu device.
            config: Session configuration.
        """
        self._config = config or SessionConfig()
        self._adapter = adapter
        self._device = device
        self._queue = device.queue
        self._adapter_info = AdapterInfo.from_adapter(0, adapter)

        limits = getattr(device, "limits", None) or {}
        self._storage_alignment = _limit(
            limits, "min-storage-buffer-offset-alignment", _DEFAULT_STORAGE_ALIGNMENT
        )
        self._max_workgroups = _limit(
            limits, "max-compute-workgroups-per-dimension", _DEFAULT_MAX_WORKGROUPS
        )
        self._max_storage_binding = _limit(
            limits, "max-storage-buffer-binding-size", _DEFAULT_MAX_STORAGE_BINDING
        )

        self._compiler = KernelCompiler(
            device,
            workgroup_size=self._config.workgroup_size,
            cache=self._config.cache_pipelines,
        )
        self._jobs_submitted = 0
        self._closed = False

    @classmethod
    async def create(cls, adapter: Any, config: SessionConfig | None = None) -> DeviceSession:
        """
        Request a device and queue from an adapter.

        Args:
            adapter: Adapter chosen by AdapterSelector.
            config: Session configuration.

        Returns:
            A new session.

        Raises:
            DeviceRequestFailedError: If the driver rejects the request.
        """
        config = config or SessionConfig()
        name = AdapterInfo.from_adapter(0, adapter).name
        try:
            device = await adapter.request_device_async(
                label=config.label,
                required_features=[],
                required_limits=dict(config.required_limits),
            )
        except Exception as e:
            raise DeviceRequestFailedError(name, e) from e
        return cls._from_device(adapter, device, config, name)

    @classmethod
    def create_sync(cls, adapter: Any, config: SessionConfig | None = None) -> DeviceSession:
        """Blocking variant of create()."""
        config = config or SessionConfig()
        name = AdapterInfo.from_adapter(0, adapter).name
        try:
            device = adapter.request_device_sync(
                label=config.label,
                required_features=[],
                required_limits=dict(config.required_limits),
            )
        except Exception as e:
            raise DeviceRequestFailedError(name, e) from e
        return cls._from_device(adapter, device, config, name)

    @classmethod
    def _from_device(
        cls,
        adapter: Any,
        device: Any,
        config: SessionConfig,
        name: str,
    ) -> DeviceSession:
        if device is None:
            raise DeviceRequestFailedError(name, RuntimeError("device request returned None"))
        session = cls(adapter, device, config)
        logger.info(
            f"Created session '{config.label}' on {name} "
            f"(storage alignment {session.storage_alignment}B)"
        )
        return session

    @classmethod
    async def open(cls, config: SessionConfig | None = None) -> DeviceSession:
        """
        Select the preferred adapter and create a session on it.

        Raises:
            NoAdapterFoundError: If no adapter exists.
            DeviceRequestFailedError: If the driver rejects the request.
        """
        selector = await AdapterSelector.discover()
        return await cls.create(selector.require(), config)

    @classmethod
    def open_sync(cls, config: SessionConfig | None = None) -> DeviceSession:
        """Blocking variant of open()."""
        return cls.create_sync(AdapterSelector().require(), config)

    @property
    def config(self) -> SessionConfig:
        """Get the session configuration."""
        return self._config

    @property
    def adapter(self) -> Any:
        """Get the adapter."""
        return self._adapter

    @property
    def adapter_info(self) -> AdapterInfo:
        """Get info about the adapter."""
        return self._adapter_info

    @property
    def device(self) -> Any:
        """Get the device, failing if the session is closed."""
        self.ensure_open()
        return self._device

    @property
    def queue(self) -> Any:
        """Get the submission queue, failing if the session is closed."""
        self.ensure_open()
        return self._queue

    @property
    def compiler(self) -> KernelCompiler:
        """Get the session's kernel compiler."""
        return self._compiler

    @property
    def storage_alignment(self) -> int:
        """Get the minimum storage-buffer alignment in bytes."""
        return self._storage_alignment

    @property
    def max_workgroups_per_dimension(self) -> int:
        """Get the maximum workgroup count per dispatch dimension."""
        return self._max_workgroups

    @property
    def max_storage_binding_size(self) -> int:
        """Get the maximum storage buffer binding size in bytes."""
        return self._max_storage_binding

    @property
    def jobs_submitted(self) -> int:
        """Get the number of jobs submitted on this session."""
        return self._jobs_submitted

    @property
    def is_closed(self) -> bool:
        """Check if the session has been closed."""
        return self._closed

    def ensure_open(self) -> None:
        """Raise SessionClosedError if the session is closed."""
        if self._closed:
            raise SessionClosedError(self._config.label)

    def record_submission(self) -> None:
        """Count one submitted job."""
        self._jobs_submitted += 1

    def close(self) -> None:
        """Release the device. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._compiler.clear_cache()
        self._device.destroy()
        logger.info(
            f"Closed session '{self._config.label}' after {self._jobs_submitted} jobs"
        )

    def __enter__(self) -> DeviceSession:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    async def __aenter__(self) -> DeviceSession:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"DeviceSession(label={self._config.label!r}, "
            f"adapter={self._adapter_info.name!r}, "
            f"alignment={self._storage_alignment}, "
            f"closed={self._closed})"
        )
