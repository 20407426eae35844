"""
PyGPUSort examples.

This module contains example scripts demonstrating
sorting on WebGPU devices.
"""

from examples.sort_basic import run_sort_example

__all__ = [
    "run_sort_example",
]
