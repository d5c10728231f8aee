"""
Trace Export

Writes selection traces to an audit directory, one JSON file per trace
or appended to a JSON Lines log.
"""

from __future__ import annotations

import json
import os
import re
import threading
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from loguru import logger

from .trace_builder import SelectionTrace, serialize_trace


_UNSAFE_NAME = re.compile(r'[^A-Za-z0-9_.-]+')


class TraceFormat(Enum):
    """Supported export formats."""

    JSON = auto()    # One pretty-printed file per trace
    JSONL = auto()   # One line per trace in a shared log


class TraceExporter:
    """
    Persist traces verbatim, keyed by trace id.

    Usage:
        exporter = TraceExporter('artifacts/selection')

        # One file per trace
        path = exporter.export(trace)

        # Shared log
        exporter.export(trace, TraceFormat.JSONL)
    """

    def __init__(self, output_dir: str, log_name: str = 'selection_traces.jsonl'):
        """
        Initialize exporter.

        Args:
            output_dir: Directory traces are written to
            log_name: File name of the JSON Lines log
        """
        self.output_dir = Path(output_dir)
        self.log_name = log_name
        self._lock = threading.Lock()

    def path_for(self, trace: SelectionTrace) -> Path:
        document = _UNSAFE_NAME.sub('_', trace.document_id or 'document')
        return self.output_dir / f"selection_trace_{document}_{trace.trace_id}.json"

    def export(
        self,
        trace: SelectionTrace,
        format: TraceFormat = TraceFormat.JSON,
    ) -> str:
        """
        Export a trace.

        Args:
            trace: Trace to write
            format: Export format

        Returns:
            Path to the written file
        """
        os.makedirs(self.output_dir, exist_ok=True)

        if format == TraceFormat.JSON:
            path = self.path_for(trace)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(serialize_trace(trace))
                f.write('\n')
        elif format == TraceFormat.JSONL:
            path = self.output_dir / self.log_name
            line = json.dumps(trace.to_dict(), sort_keys=True, ensure_ascii=False)
            with self._lock:
                with open(path, 'a', encoding='utf-8') as f:
                    f.write(line + '\n')
        else:
            raise ValueError(f"Unsupported format: {format}")

        logger.debug(f"Wrote selection trace {trace.trace_id} to {path}")
        return str(path)


def load_trace_dict(path: str) -> Optional[dict]:
    """Read back a trace file written with TraceFormat.JSON."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)
