"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Generator

import numpy as np
import pytest

from pygpusort.core.session import DeviceSession, SessionConfig
from tests.fakes import FakeAdapter, FakeDevice


@pytest.fixture
def fake_device() -> FakeDevice:
    """Provide a simulated device."""
    return FakeDevice()


@pytest.fixture
def fake_adapter(fake_device: FakeDevice) -> FakeAdapter:
    """Provide a simulated discrete GPU adapter."""
    return FakeAdapter(device=fake_device)


@pytest.fixture
def fake_session(fake_adapter: FakeAdapter) -> Generator[DeviceSession, None, None]:
    """Provide a session on the simulated device."""
    session = DeviceSession.create_sync(fake_adapter, SessionConfig(label="test"))
    yield session
    session.close()


@pytest.fixture
def gpu_session() -> Generator[DeviceSession, None, None]:
    """Provide a session on the preferred real adapter."""
    session = DeviceSession.open_sync(SessionConfig(label="gpu-test"))
    yield session
    session.close()


@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random generator."""
    return np.random.default_rng(1234)


# Markers for GPU tests
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "gpu: mark test as requiring a real wgpu adapter"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip GPU tests if no wgpu adapter is available."""
    if not any("gpu" in item.keywords for item in items):
        return

    gpu_available = False
    try:
        import wgpu

        gpu_available = len(wgpu.gpu.enumerate_adapters_sync()) > 0
    except Exception:
        pass

    if not gpu_available:
        skip_gpu = pytest.mark.skip(reason="No wgpu adapter available")
        for item in items:
            if "gpu" in item.keywords:
                item.add_marker(skip_gpu)
