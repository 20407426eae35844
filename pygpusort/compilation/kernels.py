"""
WGSL source for the parallel rank-sort kernel.

Each invocation owns one input index i and scatters input[i] to

    rank(i) = |{j : input[j] < input[i]}| + |{j < i : input[j] == input[i]}|

which is a bijection onto [0, N), so no atomics or barriers are needed.
The scan bound is the length binding, never the (padded) buffer size.
"""

from __future__ import annotations

from string import Template

from pygpusort.core.element_kind import ElementKind

DEFAULT_WORKGROUP_SIZE = 64
ENTRY_POINT = "main"

INPUT_BINDING = 0
OUTPUT_BINDING = 1
LENGTH_BINDING = 2

_RANK_SORT_TEMPLATE = Template(
    """
@group(0) @binding(0) var<storage, read> input_data: array<${elem}>;
@group(0) @binding(1) var<storage, read_write> output_data: array<${elem}>;
@group(0) @binding(2) var<storage, read> length_data: u32;

@compute @workgroup_size(${workgroup_size})
fn main(@builtin(global_invocation_id) id: vec3<u32>) {
    let i = id.x;
    if (i >= length_data) {
        return;
    }
    let v = input_data[i];
    var rank = 0u;
    for (var j = 0u; j < length_data; j = j + 1u) {
        let w = input_data[j];
        if (w < v || (w == v && j < i)) {
            rank = rank + 1u;
        }
    }
    output_data[rank] = v;
}
"""
)


def rank_sort_source(kind: ElementKind, workgroup_size: int = DEFAULT_WORKGROUP_SIZE) -> str:
    """
    Generate the rank-sort WGSL source for one element kind.

    Args:
        kind: Element kind; only its WGSL type token is substituted.
        workgroup_size: Lanes per workgroup.

    Returns:
        WGSL source text.
    """
    return _RANK_SORT_TEMPLATE.substitute(elem=kind.wgsl_type, workgroup_size=workgroup_size)


def workgroup_count(element_count: int, workgroup_size: int = DEFAULT_WORKGROUP_SIZE) -> int:
    """Get the number of workgroups covering element_count lanes (rounded up)."""
    return -(-element_count // workgroup_size)
