"""
Kernel compiler for PyGPUSort.

Compiles the rank-sort WGSL source into compute pipelines on a
device, caching one pipeline per element kind.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any

import wgpu

from pygpusort.compilation.kernels import (
    DEFAULT_WORKGROUP_SIZE,
    ENTRY_POINT,
    INPUT_BINDING,
    LENGTH_BINDING,
    OUTPUT_BINDING,
    rank_sort_source,
)
from pygpusort.core.element_kind import ElementKind
from pygpusort.exceptions import KernelCompilationError

logger = logging.getLogger(__name__)


@dataclass
class CompiledKernel:
    """A compiled rank-sort pipeline with metadata."""

    kind: ElementKind
    name: str
    source: str
    source_hash: str
    workgroup_size: int
    shader_module: Any
    bind_group_layout: Any
    pipeline_layout: Any
    pipeline: Any
    compile_time_ms: float = 0.0


def binding_layout_entries() -> list[dict[str, Any]]:
    """
    Get the three-binding resource layout of the rank-sort kernel.

    Binding 0 is the read-only input, binding 1 the writable output and
    binding 2 the read-only length scalar.
    """
    return [
        {
            "binding": INPUT_BINDING,
            "visibility": wgpu.ShaderStage.COMPUTE,
            "buffer": {"type": wgpu.BufferBindingType.read_only_storage},
        },
        {
            "binding": OUTPUT_BINDING,
            "visibility": wgpu.ShaderStage.COMPUTE,
            "buffer": {"type": wgpu.BufferBindingType.storage},
        },
        {
            "binding": LENGTH_BINDING,
            "visibility": wgpu.ShaderStage.COMPUTE,
            "buffer": {"type": wgpu.BufferBindingType.read_only_storage},
        },
    ]


class KernelCompiler:
    """
    Compiler for the rank-sort kernel.

    One compiler belongs to one device. Kernel text only differs by the
    element type token, so the cache holds at most one entry per kind.

    Example:
        >>> compiler = KernelCompiler(device)
        >>> compiled = compiler.compile(ElementKind.UINT32)
        >>> # Use compiled.pipeline and compiled.bind_group_layout
    """

    def __init__(
        self,
        device: Any,
        *,
        workgroup_size: int = DEFAULT_WORKGROUP_SIZE,
        cache: bool = True,
    ) -> None:
        """
        Initialize the kernel compiler.

        Args:
            device: wgpu device to compile on.
            workgroup_size: Lanes per workgroup baked into the source.
            cache: Whether to reuse pipelines across jobs.
        """
        self._device = device
        self._workgroup_size = workgroup_size
        self._cache_enabled = cache
        self._compiled_cache: dict[str, CompiledKernel] = {}

    @property
    def workgroup_size(self) -> int:
        """Get the workgroup size used in generated sources."""
        return self._workgroup_size

    def compile(self, kind: ElementKind) -> CompiledKernel:
        """
        Compile the rank-sort kernel for one element kind.

        Args:
            kind: Element kind to compile for.

        Returns:
            CompiledKernel with the pipeline and its bind group layout.

        Raises:
            KernelCompilationError: If shader or pipeline creation fails.
        """
        source = rank_sort_source(kind, self._workgroup_size)
        source_hash = self._get_source_hash(source)
        kernel_name = f"rank_sort_{kind.wgsl_type}"

        if self._cache_enabled and source_hash in self._compiled_cache:
            logger.debug(f"Pipeline cache hit for {kernel_name}")
            return self._compiled_cache[source_hash]

        start_time = time.perf_counter()

        try:
            shader_module = self._device.create_shader_module(
                label=f"{kernel_name} shader",
                code=source,
            )
            bind_group_layout = self._device.create_bind_group_layout(
                label=f"{kernel_name} bind group layout",
                entries=binding_layout_entries(),
            )
            pipeline_layout = self._device.create_pipeline_layout(
                label=f"{kernel_name} pipeline layout",
                bind_group_layouts=[bind_group_layout],
            )
            pipeline = self._device.create_compute_pipeline(
                label=f"{kernel_name} pipeline",
                layout=pipeline_layout,
                compute={"module": shader_module, "entry_point": ENTRY_POINT},
            )
        except Exception as e:
            raise KernelCompilationError(kernel_name, e) from e

        compile_time = (time.perf_counter() - start_time) * 1000
        result = CompiledKernel(
            kind=kind,
            name=kernel_name,
            source=source,
            source_hash=source_hash,
            workgroup_size=self._workgroup_size,
            shader_module=shader_module,
            bind_group_layout=bind_group_layout,
            pipeline_layout=pipeline_layout,
            pipeline=pipeline,
            compile_time_ms=compile_time,
        )
        logger.debug(f"Compiled {kernel_name} in {compile_time:.2f}ms")

        if self._cache_enabled:
            self._compiled_cache[source_hash] = result

        return result

    def _get_source_hash(self, source: str) -> str:
        """Generate a hash for cache key."""
        return hashlib.sha256(source.encode()).hexdigest()[:16]

    def get_cached_kernel(self, kind: ElementKind) -> CompiledKernel | None:
        """
        Get the cached kernel for a kind.

        Returns:
            CompiledKernel or None if not cached.
        """
        source_hash = self._get_source_hash(rank_sort_source(kind, self._workgroup_size))
        return self._compiled_cache.get(source_hash)

    def clear_cache(self) -> int:
        """
        Clear the pipeline cache.

        Returns:
            Number of entries cleared.
        """
        count = len(self._compiled_cache)
        self._compiled_cache.clear()
        return count

    def get_cache_stats(self) -> dict[str, int]:
        """Get cache statistics."""
        return {
            "cached_kernels": len(self._compiled_cache),
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"KernelCompiler(workgroup_size={self._workgroup_size}, "
            f"cached={len(self._compiled_cache)})"
        )
