"""
End-to-end tests on a real wgpu adapter.

Skipped when enumeration finds no adapter.
"""

from __future__ import annotations

import numpy as np
import pytest

from pygpusort import CPUBackend, DeviceSession, sort, sort_many
from pygpusort.core.accelerator import AdapterSelector


@pytest.mark.gpu
class TestGpuSort:
    """Sorting on the preferred adapter."""

    def test_adapter_selected(self) -> None:
        """Test the selector finds an adapter."""
        assert AdapterSelector().require() is not None

    @pytest.mark.asyncio
    async def test_u32_example(self, gpu_session: DeviceSession) -> None:
        """Test the reference u32 example."""
        result = await sort(gpu_session, [2, 5, 1, 7, 3, 3, 6, 8, 9, 4, 77, 33], "u32")

        assert result.tolist() == [1, 2, 3, 3, 4, 5, 6, 7, 8, 9, 33, 77]

    @pytest.mark.asyncio
    async def test_i32_example(self, gpu_session: DeviceSession) -> None:
        """Test negatives and duplicates."""
        result = await sort(gpu_session, [-5, 3, -5, 0], "i32")

        assert result.tolist() == [-5, -5, 0, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [1, 63, 64, 65, 1000])
    async def test_f32_random(
        self, gpu_session: DeviceSession, rng: np.random.Generator, count: int
    ) -> None:
        """Test random floats across workgroup boundaries."""
        values = rng.uniform(-1000.0, 1000.0, size=count).astype(np.float32)

        result = await sort(gpu_session, values)

        np.testing.assert_array_equal(result, np.sort(values))

    @pytest.mark.asyncio
    async def test_signed_zeros_keep_order(self, gpu_session: DeviceSession) -> None:
        """Test +0.0 and -0.0 compare equal and stay in input order."""
        values = np.array([0.0, -0.0, 1.0, -0.0, 0.0, -1.0, -0.0], dtype=np.float32)

        result = await sort(gpu_session, values)

        assert result.tolist() == [-1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0]
        assert np.signbit(result[1:6]).tolist() == [False, True, True, False, True]

    @pytest.mark.asyncio
    async def test_matches_stable_argsort(
        self, gpu_session: DeviceSession, rng: np.random.Generator
    ) -> None:
        """Test tagged ties across several workgroups land where a stable sort puts them."""
        magnitudes = rng.integers(0, 3, size=500).astype(np.float32)
        signs = np.where(rng.random(500) < 0.5, -1.0, 1.0).astype(np.float32)
        values = magnitudes * signs

        result = await sort(gpu_session, values)

        expected = values[np.argsort(values, kind="stable")]
        np.testing.assert_array_equal(result, expected)
        assert np.signbit(result).tolist() == np.signbit(expected).tolist()

    @pytest.mark.asyncio
    async def test_matches_cpu(self, gpu_session: DeviceSession, rng: np.random.Generator) -> None:
        """Test agreement with the host rank sort."""
        values = rng.integers(0, 1000, size=500).astype(np.uint32)

        gpu = await sort(gpu_session, values)
        cpu = await CPUBackend().sort(values)

        np.testing.assert_array_equal(gpu, cpu)

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_many_rows(self, gpu_session: DeviceSession, rng: np.random.Generator) -> None:
        """Test many concurrent jobs on one session."""
        rows = [rng.integers(0, 1000, size=1000).astype(np.uint32) for _ in range(32)]

        results = await sort_many(gpu_session, rows)

        for row, result in zip(rows, results):
            np.testing.assert_array_equal(result, np.sort(row))
        assert gpu_session.jobs_submitted == 32
