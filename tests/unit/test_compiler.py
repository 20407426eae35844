"""
Unit tests for the kernel compiler.
"""

from __future__ import annotations

import pytest
import wgpu

from pygpusort.compilation.compiler import KernelCompiler, binding_layout_entries
from pygpusort.compilation.kernels import ENTRY_POINT
from pygpusort.core.element_kind import ElementKind
from pygpusort.exceptions import CompilationError, KernelCompilationError
from tests.fakes import FakeDevice


class TestBindingLayout:
    """Tests for the rank-sort resource layout."""

    def test_three_bindings(self) -> None:
        """Test input, output, length bindings in order."""
        entries = binding_layout_entries()

        assert [e["binding"] for e in entries] == [0, 1, 2]
        assert entries[0]["buffer"]["type"] == wgpu.BufferBindingType.read_only_storage
        assert entries[1]["buffer"]["type"] == wgpu.BufferBindingType.storage
        assert entries[2]["buffer"]["type"] == wgpu.BufferBindingType.read_only_storage

    def test_compute_visibility(self) -> None:
        """Test every binding is visible to compute only."""
        for entry in binding_layout_entries():
            assert entry["visibility"] == wgpu.ShaderStage.COMPUTE


class TestKernelCompiler:
    """Tests for KernelCompiler."""

    def test_compile(self, fake_device: FakeDevice) -> None:
        """Test compiling creates a pipeline with the main entry point."""
        compiler = KernelCompiler(fake_device)

        compiled = compiler.compile(ElementKind.UINT32)

        assert compiled.name == "rank_sort_u32"
        assert compiled.kind is ElementKind.UINT32
        assert compiled.pipeline.compute["entry_point"] == ENTRY_POINT
        assert compiled.pipeline.compute["module"].code == compiled.source
        assert compiled.pipeline_layout.bind_group_layouts == [compiled.bind_group_layout]
        assert compiled.compile_time_ms >= 0

    def test_cache_hit(self, fake_device: FakeDevice) -> None:
        """Test one pipeline per kind is built."""
        compiler = KernelCompiler(fake_device)

        first = compiler.compile(ElementKind.FLOAT32)
        second = compiler.compile(ElementKind.FLOAT32)

        assert first is second
        assert len(fake_device.shader_modules) == 1

    def test_kinds_cached_separately(self, fake_device: FakeDevice) -> None:
        """Test each kind gets its own entry."""
        compiler = KernelCompiler(fake_device)

        for kind in ElementKind:
            compiler.compile(kind)

        assert compiler.get_cache_stats()["cached_kernels"] == 3
        assert compiler.get_cached_kernel(ElementKind.INT32) is not None

    def test_cache_disabled(self, fake_device: FakeDevice) -> None:
        """Test disabling the cache recompiles every time."""
        compiler = KernelCompiler(fake_device, cache=False)

        compiler.compile(ElementKind.UINT32)
        compiler.compile(ElementKind.UINT32)

        assert len(fake_device.shader_modules) == 2
        assert compiler.get_cached_kernel(ElementKind.UINT32) is None

    def test_clear_cache(self, fake_device: FakeDevice) -> None:
        """Test clearing the cache."""
        compiler = KernelCompiler(fake_device)
        compiler.compile(ElementKind.UINT32)
        compiler.compile(ElementKind.INT32)

        assert compiler.clear_cache() == 2
        assert compiler.get_cache_stats()["cached_kernels"] == 0

    def test_workgroup_size(self, fake_device: FakeDevice) -> None:
        """Test the workgroup size is baked into the source."""
        compiler = KernelCompiler(fake_device, workgroup_size=32)

        compiled = compiler.compile(ElementKind.UINT32)

        assert compiled.workgroup_size == 32
        assert "@workgroup_size(32)" in compiled.source

    def test_compile_error(self, fake_device: FakeDevice) -> None:
        """Test device errors are wrapped."""
        fake_device.compile_error = RuntimeError("naga: parse error")
        compiler = KernelCompiler(fake_device)

        with pytest.raises(KernelCompilationError) as exc_info:
            compiler.compile(ElementKind.FLOAT32)

        assert exc_info.value.kernel_name == "rank_sort_f32"
        assert isinstance(exc_info.value, CompilationError)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert compiler.get_cached_kernel(ElementKind.FLOAT32) is None

    def test_repr(self, fake_device: FakeDevice) -> None:
        """Test string representation."""
        assert "workgroup_size=64" in repr(KernelCompiler(fake_device))
