"""
Unit tests for adapter discovery and selection.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from pygpusort.core import accelerator
from pygpusort.core.accelerator import (
    AdapterInfo,
    AdapterSelector,
    AdapterType,
    select_adapter,
)
from pygpusort.exceptions import NoAdapterFoundError
from tests.fakes import FakeAdapter


class TestAdapterType:
    """Tests for AdapterType parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("DiscreteGPU", AdapterType.DISCRETE_GPU),
            ("IntegratedGPU", AdapterType.INTEGRATED_GPU),
            ("discrete-gpu", AdapterType.DISCRETE_GPU),
            ("VirtualGPU", AdapterType.VIRTUAL_GPU),
            ("CPU", AdapterType.CPU),
            ("Unknown", AdapterType.UNKNOWN),
            (None, AdapterType.UNKNOWN),
        ],
    )
    def test_parse(self, raw: object, expected: AdapterType) -> None:
        """Test wgpu adapter_type strings are recognized."""
        assert AdapterType.parse(raw) is expected


class TestAdapterInfo:
    """Tests for AdapterInfo."""

    def test_from_adapter(self) -> None:
        """Test fields are read from the info mapping."""
        info = AdapterInfo.from_adapter(3, FakeAdapter("IntegratedGPU", "iGPU"))

        assert info.index == 3
        assert info.name == "iGPU"
        assert info.backend == "Vulkan"
        assert info.adapter_type is AdapterType.INTEGRATED_GPU
        assert info.is_gpu

    def test_missing_info(self) -> None:
        """Test adapters without info get a placeholder name."""
        info = AdapterInfo.from_adapter(1, object())

        assert info.name == "adapter-1"
        assert info.adapter_type is AdapterType.UNKNOWN
        assert not info.is_gpu


class TestAdapterSelector:
    """Tests for AdapterSelector."""

    def test_prefers_discrete(self) -> None:
        """Test a discrete GPU wins over earlier adapters."""
        cpu = FakeAdapter("CPU", "llvmpipe")
        integrated = FakeAdapter("IntegratedGPU", "iGPU")
        discrete = FakeAdapter("DiscreteGPU", "dGPU")

        selector = AdapterSelector([cpu, integrated, discrete])

        assert selector.select() is discrete

    def test_integrated_over_fallback(self) -> None:
        """Test an integrated GPU wins when no discrete GPU exists."""
        cpu = FakeAdapter("CPU", "llvmpipe")
        integrated = FakeAdapter("IntegratedGPU", "iGPU")

        assert AdapterSelector([cpu, integrated]).select() is integrated

    def test_first_discrete_wins(self) -> None:
        """Test enumeration order breaks ties."""
        first = FakeAdapter("DiscreteGPU", "first")
        second = FakeAdapter("DiscreteGPU", "second")

        assert AdapterSelector([first, second]).select() is first

    def test_fallback_first(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test falling back to the first adapter with a warning."""
        virtual = FakeAdapter("VirtualGPU", "virt")
        cpu = FakeAdapter("CPU", "llvmpipe")

        with caplog.at_level(logging.WARNING, logger="pygpusort.core.accelerator"):
            selected = AdapterSelector([virtual, cpu]).select()

        assert selected is virtual
        assert "Falling back" in caplog.text

    def test_no_adapters(self) -> None:
        """Test selection yields None when nothing was enumerated."""
        selector = AdapterSelector([])

        assert selector.select() is None
        assert selector.select_index() is None

    def test_require_raises(self) -> None:
        """Test require() raises NoAdapterFoundError."""
        with pytest.raises(NoAdapterFoundError):
            AdapterSelector([]).require()

    def test_logs_every_adapter(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test discovery emits one diagnostic line per adapter."""
        adapters = [FakeAdapter("CPU", "soft"), FakeAdapter("DiscreteGPU", "hard")]

        with caplog.at_level(logging.INFO, logger="pygpusort.core.accelerator"):
            AdapterSelector(adapters)

        discovered = [r for r in caplog.records if "Discovered adapter" in r.getMessage()]
        assert len(discovered) == 2

    def test_infos_and_copies(self) -> None:
        """Test accessors return copies."""
        selector = AdapterSelector([FakeAdapter()])

        selector.adapters.append(None)
        selector.infos.append(None)  # type: ignore[arg-type]

        assert selector.adapter_count == 1
        assert len(selector.infos) == 1

    def test_enumerates_all_backends(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test wgpu enumeration is used when no list is given."""
        discrete = FakeAdapter("DiscreteGPU")
        fake_gpu = SimpleNamespace(enumerate_adapters_sync=lambda: [discrete])
        monkeypatch.setattr(accelerator, "wgpu", SimpleNamespace(gpu=fake_gpu))

        assert select_adapter() is discrete

    @pytest.mark.asyncio
    async def test_discover_async(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test asynchronous discovery."""
        integrated = FakeAdapter("IntegratedGPU")

        async def enumerate_async() -> list[FakeAdapter]:
            return [integrated]

        fake_gpu = SimpleNamespace(enumerate_adapters_async=enumerate_async)
        monkeypatch.setattr(accelerator, "wgpu", SimpleNamespace(gpu=fake_gpu))

        selector = await AdapterSelector.discover()

        assert selector.select() is integrated
