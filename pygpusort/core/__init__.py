"""
Core abstractions for PyGPUSort.
"""

from pygpusort.core.accelerator import AdapterInfo, AdapterSelector, AdapterType, select_adapter
from pygpusort.core.element_kind import ElementKind
from pygpusort.core.job import JobState, SortJob
from pygpusort.core.layout import BufferLayout, pad_input, plan_layout
from pygpusort.core.readback import MapCompletion, ReadbackChannel
from pygpusort.core.session import DeviceSession, SessionConfig
from pygpusort.core.sorter import sort, sort_many, sort_sync

__all__ = [
    "AdapterInfo",
    "AdapterSelector",
    "AdapterType",
    "select_adapter",
    "ElementKind",
    "SortJob",
    "JobState",
    "BufferLayout",
    "plan_layout",
    "pad_input",
    "MapCompletion",
    "ReadbackChannel",
    "DeviceSession",
    "SessionConfig",
    "sort",
    "sort_many",
    "sort_sync",
]
