"""
Compute adapter discovery and selection.

Enumerates the adapters exposed by wgpu across all backends and picks
the one a sort session should run on.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import wgpu

from pygpusort.exceptions import NoAdapterFoundError

logger = logging.getLogger(__name__)


class AdapterType(Enum):
    """Kind of hardware behind an adapter."""

    DISCRETE_GPU = auto()
    INTEGRATED_GPU = auto()
    VIRTUAL_GPU = auto()
    CPU = auto()
    UNKNOWN = auto()

    @classmethod
    def parse(cls, value: object) -> AdapterType:
        """Parse wgpu's adapter_type string (e.g. 'DiscreteGPU')."""
        normalized = str(value or "").replace("-", "").replace("_", "").replace(" ", "").lower()
        return _ADAPTER_TYPE_NAMES.get(normalized, cls.UNKNOWN)


_ADAPTER_TYPE_NAMES = {
    "discretegpu": AdapterType.DISCRETE_GPU,
    "integratedgpu": AdapterType.INTEGRATED_GPU,
    "virtualgpu": AdapterType.VIRTUAL_GPU,
    "cpu": AdapterType.CPU,
}


@dataclass(frozen=True)
class AdapterInfo:
    """Properties of one discovered adapter."""

    index: int
    name: str
    vendor: str
    backend: str
    adapter_type: AdapterType
    description: str = ""

    @property
    def is_gpu(self) -> bool:
        """Check if the adapter is backed by GPU hardware."""
        return self.adapter_type in (AdapterType.DISCRETE_GPU, AdapterType.INTEGRATED_GPU)

    @classmethod
    def from_adapter(cls, index: int, adapter: Any) -> AdapterInfo:
        """Build from a wgpu adapter's info mapping."""
        info = getattr(adapter, "info", None) or {}
        return cls(
            index=index,
            name=str(info.get("device", "") or f"adapter-{index}"),
            vendor=str(info.get("vendor", "")),
            backend=str(info.get("backend_type", "")),
            adapter_type=AdapterType.parse(info.get("adapter_type")),
            description=str(info.get("description", "")),
        )

    def __str__(self) -> str:
        return f"[{self.index}] {self.name} ({self.adapter_type.name}, {self.backend})"


class AdapterSelector:
    """
    Adapter discovery and selection.

    Selection policy, in order: the first discrete GPU, else the first
    integrated GPU, else the first enumerated adapter (software fallback).

    The selector is owned by the caller; nothing is cached process-wide.

    Example:
        >>> selector = AdapterSelector()
        >>> adapter = selector.select()
        >>> if adapter is None:
        ...     raise SystemExit("no adapter")
    """

    def __init__(self, adapters: Sequence[Any] | None = None) -> None:
        """
        Initialize the selector.

        Args:
            adapters: Explicit adapter list. When None, all adapters are
                enumerated from wgpu across every backend.
        """
        if adapters is None:
            adapters = wgpu.gpu.enumerate_adapters_sync()
        self._adapters: list[Any] = list(adapters)
        self._infos = [AdapterInfo.from_adapter(i, a) for i, a in enumerate(self._adapters)]
        self._log_discovered()

    @classmethod
    async def discover(cls) -> AdapterSelector:
        """Create a selector from asynchronous enumeration."""
        adapters = await wgpu.gpu.enumerate_adapters_async()
        return cls(adapters)

    def _log_discovered(self) -> None:
        if not self._infos:
            logger.info("No adapters found")
            return
        for info in self._infos:
            logger.info(f"Discovered adapter {info}")

    @property
    def adapters(self) -> list[Any]:
        """Get all discovered adapters."""
        return self._adapters.copy()

    @property
    def infos(self) -> list[AdapterInfo]:
        """Get info for all discovered adapters."""
        return self._infos.copy()

    @property
    def adapter_count(self) -> int:
        """Get the number of discovered adapters."""
        return len(self._adapters)

    def select_index(self) -> int | None:
        """Get the index of the preferred adapter, or None if there are none."""
        for wanted in (AdapterType.DISCRETE_GPU, AdapterType.INTEGRATED_GPU):
            for info in self._infos:
                if info.adapter_type == wanted:
                    return info.index

        if not self._infos:
            return None

        logger.warning(
            "No discrete or integrated GPU found. "
            f"Falling back to adapter {self._infos[0]}"
        )
        return 0

    def select(self) -> Any | None:
        """
        Select the preferred adapter.

        Returns:
            A wgpu adapter, or None if enumeration found nothing.
        """
        index = self.select_index()
        if index is None:
            return None
        logger.info(f"Selected adapter {self._infos[index]}")
        return self._adapters[index]

    def require(self) -> Any:
        """
        Select the preferred adapter or fail.

        Raises:
            NoAdapterFoundError: If enumeration found nothing.
        """
        adapter = self.select()
        if adapter is None:
            raise NoAdapterFoundError("Enumeration across all backends returned no adapters.")
        return adapter

    def __repr__(self) -> str:
        """String representation."""
        return f"AdapterSelector(adapters={self.adapter_count})"


def select_adapter(adapters: Sequence[Any] | None = None) -> Any | None:
    """
    Discover adapters and select the preferred one.

    Args:
        adapters: Explicit adapter list (enumerates all backends when None).

    Returns:
        A wgpu adapter, or None when no adapter exists.
    """
    return AdapterSelector(adapters).select()
