"""
Selection Trace

Deterministic audit records of selection decisions and their export.

Usage:
    from template_selector.trace import serialize_trace, TraceExporter

    text = serialize_trace(result.trace)
    TraceExporter('artifacts/selection').export(result.trace)
"""

from .trace_builder import (
    TRACE_VERSION,
    SelectionTrace,
    TraceBuilder,
    create_input_hash,
    compute_trace_id,
    serialize_trace,
)
from .trace_export import (
    TraceExporter,
    TraceFormat,
    load_trace_dict,
)

__all__ = [
    'TRACE_VERSION',
    'SelectionTrace',
    'TraceBuilder',
    'create_input_hash',
    'compute_trace_id',
    'serialize_trace',
    'TraceExporter',
    'TraceFormat',
    'load_trace_dict',
]
