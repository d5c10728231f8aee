"""
Tests for selection traces and trace export.
"""

import json

import pytest

from conftest import JOB_SHEET_TEXT, make_job_sheet
from template_selector.decision.decision_engine import SelectionDecision
from template_selector.document import DocumentContext
from template_selector.selection.selector import TemplateSelector
from template_selector.text.tokenizer import tokenize_document
from template_selector.trace.trace_builder import (
    TOKEN_SAMPLE_SIZE,
    TraceBuilder,
    compute_trace_id,
    create_input_hash,
    serialize_trace,
)
from template_selector.trace.trace_export import TraceExporter, TraceFormat, load_trace_dict


class TestInputHash:
    """Tests for the input hash."""

    def test_empty(self):
        assert create_input_hash('') == '00000000'

    def test_known_values(self):
        assert create_input_hash('a') == '00000061'
        assert create_input_hash('ab') == '00000c21'

    def test_stable(self):
        assert create_input_hash('job sheet') == create_input_hash('job sheet')
        assert create_input_hash('job sheet') != create_input_hash('sheet job')


class TestTraceBuilder:
    """Tests for trace assembly."""

    def test_build_requires_decision(self):
        with pytest.raises(ValueError):
            TraceBuilder().build()

    def test_trace_id_is_content_addressed(self):
        decision = SelectionDecision.hard_stop('No template candidates found', 'add templates')
        trace = TraceBuilder().set_input(tokenize_document('job sheet')).set_decision(decision).build()

        assert trace.trace_id.startswith('sel_')
        assert len(trace.trace_id) == 20
        assert trace.trace_id == compute_trace_id(trace.canonical_body())
        assert trace.gap == -1
        assert trace.top_candidate is None

    def test_token_sample_truncated(self):
        text = ' '.join(f"word{i}" for i in range(50))
        decision = SelectionDecision.hard_stop('x', 'y')
        trace = TraceBuilder().set_input(tokenize_document(text), len(text)).set_decision(decision).build()

        assert len(trace.input_signals['token_sample']) == TOKEN_SAMPLE_SIZE
        assert trace.input_signals['token_count'] == 50
        assert trace.input_signals['document_length'] == len(text)


class TestSelectionTraceContent:
    """Traces produced by the selector."""

    def setup_method(self):
        self.result = TemplateSelector().select(
            DocumentContext(JOB_SHEET_TEXT, document_id='JS/001'),
            [make_job_sheet()],
        )
        self.trace = self.result.trace

    def test_records_decision_and_candidates(self):
        assert self.trace.decision == self.result.decision
        assert self.trace.top_candidate['template_slug'] == 'job-sheet'
        assert self.trace.runner_up is None
        assert self.trace.confidence_band == self.result.confidence_band
        assert self.trace.document_id == 'JS/001'
        assert self.trace.mode == 'token'

    def test_canonical_body_excludes_volatile_fields(self):
        body = self.trace.canonical_body()
        for name in ('trace_id', 'timestamp', 'duration_ms'):
            assert name not in body

    def test_serialization_sorted(self):
        data = json.loads(serialize_trace(self.trace))
        assert list(data) == sorted(data)
        assert data['decision']['type'] == 'AUTO_SELECT'
        assert data['weights']['version'] == '1.0.0'


class TestTraceExporter:
    """Tests for writing traces to disk."""

    def setup_method(self):
        self.trace = TemplateSelector().select(
            DocumentContext(JOB_SHEET_TEXT, document_id='JS/001'),
            [make_job_sheet()],
        ).trace

    def test_json_export(self, tmp_path):
        exporter = TraceExporter(str(tmp_path / 'traces'))
        path = exporter.export(self.trace)

        assert path.endswith(f"selection_trace_JS_001_{self.trace.trace_id}.json")
        assert load_trace_dict(path) == json.loads(serialize_trace(self.trace))

    def test_jsonl_appends(self, tmp_path):
        exporter = TraceExporter(str(tmp_path))
        exporter.export(self.trace, TraceFormat.JSONL)
        path = exporter.export(self.trace, TraceFormat.JSONL)

        lines = (tmp_path / 'selection_traces.jsonl').read_text(encoding='utf-8').splitlines()
        assert path.endswith('selection_traces.jsonl')
        assert len(lines) == 2
        assert json.loads(lines[0])['trace_id'] == self.trace.trace_id
