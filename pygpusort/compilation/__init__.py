"""
Rank-sort kernel source and pipeline compilation.
"""

from pygpusort.compilation.compiler import CompiledKernel, KernelCompiler
from pygpusort.compilation.kernels import rank_sort_source

__all__ = [
    "KernelCompiler",
    "CompiledKernel",
    "rank_sort_source",
]
