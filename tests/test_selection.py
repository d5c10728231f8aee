"""
Tests for candidate ranking and end-to-end template selection.
"""

import pytest

from conftest import (
    JOB_APPLICATION_TEXT,
    JOB_SHEET_TEXT,
    MULTI_PAGE_TEXTS,
    make_job_sheet,
    make_multi_signal_job_sheet,
)
from template_selector.config import SelectionMode, SelectorConfig
from template_selector.decision.decision_engine import DecisionType, ReasonCode
from template_selector.document import DocumentContext, DocumentMetadata, MatchingMetadata
from template_selector.selection.ranker import (
    ContextMatches,
    apply_metadata_boost,
    match_context,
    rank_candidates,
)
from template_selector.selection.selector import (
    TemplateSelector,
    build_context,
    select_template,
    select_template_multi_signal,
)
from template_selector.signals.base import ConfidenceBand, SignalType
from template_selector.templates.builtin_templates import builtin_templates
from template_selector.templates.registry import InMemoryTemplateRegistry
from template_selector.templates.template import create_template
from template_selector.text.tokenizer import tokenize_document


class TestMetadataBoost:
    """Tests for business-context boosting."""

    def setup_method(self):
        self.template = create_template(
            'tpl-1', 'one', client='acme', asset_type='crane', work_type='inspection',
        )

    def test_match_context_exact(self):
        matches = match_context(self.template, MatchingMetadata(client='acme', asset_type='Crane'))
        assert matches == ContextMatches(client=True, asset_type=False, work_type=False)

    def test_no_metadata_no_matches(self):
        assert match_context(self.template, None).boost == 0

    def test_boost_amounts(self):
        matches = ContextMatches(client=True, asset_type=True, work_type=True)
        assert matches.boost == 20
        assert apply_metadata_boost(60, matches) == 80

    def test_boost_clamped(self):
        assert apply_metadata_boost(95, ContextMatches(client=True, asset_type=True)) == 100

    def test_empty_context_value_never_matches(self):
        template = create_template('tpl-2', 'two')
        assert match_context(template, MatchingMetadata(client='')).boost == 0


class TestRankCandidates:
    """Tests for ranking."""

    def test_tie_break_by_slug(self, tie_templates):
        document = tokenize_document("Document repair")
        ranked = rank_candidates(tie_templates, document, DocumentContext("Document repair"))
        assert [c.template_slug for c in ranked] == ['a-report', 'b-report']
        assert [c.score for c in ranked] == [60, 60]
        assert ranked[0].confidence == ConfidenceBand.MEDIUM

    def test_token_candidate_fields(self, job_sheet_template):
        document = tokenize_document(JOB_SHEET_TEXT)
        candidate = rank_candidates([job_sheet_template], document, DocumentContext(JOB_SHEET_TEXT))[0]
        assert candidate.base_score == 100
        assert candidate.multi_signal is None
        assert candidate.token_signal.signal_type == SignalType.TOKEN
        assert 'maintenance' in candidate.matched_tokens

    def test_multi_signal_layout_only_with_metadata(self, multi_signal_template):
        text = '\n'.join(MULTI_PAGE_TEXTS)
        document = tokenize_document(text)

        without = rank_candidates(
            [multi_signal_template], document,
            DocumentContext(text, page_texts=MULTI_PAGE_TEXTS),
            mode=SelectionMode.MULTI_SIGNAL,
        )[0]
        with_metadata = rank_candidates(
            [multi_signal_template], document,
            DocumentContext(text, page_texts=MULTI_PAGE_TEXTS, metadata=DocumentMetadata(page_count=2)),
            mode=SelectionMode.MULTI_SIGNAL,
        )[0]

        assert without.multi_signal.get_signal(SignalType.LAYOUT) is None
        assert without.score == 100
        assert with_metadata.multi_signal.get_signal(SignalType.LAYOUT).score == 70
        assert with_metadata.score == 94


class TestSelectionScenarios:
    """End-to-end scenarios against a single job sheet template."""

    def setup_method(self):
        self.selector = TemplateSelector()
        self.templates = [make_job_sheet()]

    def select(self, text, **kwargs):
        return self.selector.select(DocumentContext(text, **kwargs), self.templates)

    def test_job_sheet_is_high(self):
        result = self.select(JOB_SHEET_TEXT)
        assert result.confidence_band == ConfidenceBand.HIGH
        assert result.top_score >= 80
        assert result.selected
        assert result.auto_processing_allowed
        assert result.template_id == 'tpl-job-sheet'
        assert result.version_id == 'tpl-job-sheet@1.0.0'
        assert result.block_reason is None
        assert result.decision_type == DecisionType.AUTO_SELECT

    def test_job_application_is_blocked(self):
        result = self.select(JOB_APPLICATION_TEXT)
        assert result.confidence_band == ConfidenceBand.LOW
        assert not result.auto_processing_allowed
        assert 'LOW_CONFIDENCE' in result.block_reason
        assert result.reason_code == ReasonCode.LOW_CONFIDENCE
        assert result.template_id is None
        assert result.decision_type == DecisionType.REVIEW_QUEUE

    def test_empty_document_is_blocked(self):
        result = self.select("")
        assert result.confidence_band == ConfidenceBand.LOW
        assert not result.selected
        assert result.top_score == 0

    def test_unknown_explicit_template_hard_stop(self):
        result = self.select(JOB_SHEET_TEXT, explicit_template_id='tpl-does-not-exist')
        assert result.decision_type == DecisionType.HARD_STOP
        assert result.reason_code == ReasonCode.PIPELINE_ERROR
        assert not result.selected
        assert 'fix:' in result.block_reason

    def test_explicit_template_beats_low_score(self):
        result = self.select("nothing useful here", explicit_template_id='job-sheet')
        assert result.selected
        assert result.template_id == 'tpl-job-sheet'
        assert result.confidence_band == ConfidenceBand.LOW

    def test_no_templates_hard_stop(self):
        result = self.selector.select(DocumentContext(JOB_SHEET_TEXT), [])
        assert result.decision_type == DecisionType.HARD_STOP
        assert result.reason_code == ReasonCode.PIPELINE_ERROR
        assert result.candidates == ()
        assert result.confidence_band == ConfidenceBand.LOW
        assert result.top_score == 0
        assert result.score_gap == 0


class TestAmbiguity:
    """Ambiguity must never be resolved silently."""

    def test_equal_alternatives(self):
        templates = [
            create_template('tpl-repair', 'repair-doc', required_all=['document'], required_any=['repair'], optional=['date']),
            create_template('tpl-service', 'service-doc', required_all=['document'], required_any=['service'], optional=['date']),
        ]
        result = select_template("Document with repair and service details", templates)

        assert result.top_score == result.runner_up_score == 88
        assert result.candidates[0].template_slug == 'repair-doc'
        if result.score_gap < 10 and result.confidence_band == ConfidenceBand.MEDIUM:
            assert not result.auto_processing_allowed
            assert 'CONFLICT' in result.block_reason

    def test_medium_tie_is_conflict(self, tie_templates):
        result = select_template("Document repair", tie_templates)
        assert result.confidence_band == ConfidenceBand.MEDIUM
        assert result.score_gap == 0
        assert not result.auto_processing_allowed
        assert result.reason_code == ReasonCode.CONFLICT
        assert 'ambiguous gap' in result.block_reason
        assert result.template_slug is None

    def test_boost_resolves_tie(self, tie_templates):
        boosted = [
            tie_templates[0],
            create_template(
                'tpl-a', 'a-report',
                required_all=['document'], required_any=['repair'],
                optional=['alpha', 'bravo', 'charlie', 'delta', 'echo'],
                client='acme',
            ),
        ]
        result = select_template("Document repair", boosted, matching_metadata=MatchingMetadata(client='acme'))
        assert result.selected
        assert result.template_slug == 'a-report'
        assert result.top_score == 70
        assert result.candidates[0].base_score == 60
        assert result.candidates[0].context_matches.client

    def test_builtin_ambiguous_heading(self):
        result = select_template("JOB SHEET / SERVICE REPORT - Inspection", builtin_templates())
        assert not result.selected
        assert result.reason_code == ReasonCode.CONFLICT


class TestNearMissSafety:
    """Incidental keyword overlap must never produce HIGH confidence."""

    @pytest.mark.parametrize('text', [
        JOB_APPLICATION_TEXT,
        "Restaurant job vacancy: kitchen porter, see attached timesheet",
        "General service document",
    ])
    def test_never_high(self, text):
        result = select_template(text, builtin_templates())
        assert result.confidence_band != ConfidenceBand.HIGH
        assert not result.selected


class TestDeterminism:
    """Identical inputs produce identical results and traces."""

    def test_repeated_selection_identical(self, tie_templates):
        selector = TemplateSelector()
        context = DocumentContext("Document repair", document_id='doc-1')

        first = selector.select(context, tie_templates)
        second = selector.select(context, list(reversed(tie_templates)))

        assert first.to_dict() == second.to_dict()
        assert first.trace.trace_id == second.trace.trace_id
        assert first.trace.canonical_body() == second.trace.canonical_body()

    def test_registry_snapshot_used(self):
        registry = InMemoryTemplateRegistry(builtin_templates())
        result = TemplateSelector(registry).select(DocumentContext(JOB_SHEET_TEXT))
        assert len(result.candidates) == len(builtin_templates())

    def test_caller_trace_id(self, job_sheet_template):
        result = TemplateSelector().select(DocumentContext(JOB_SHEET_TEXT), [job_sheet_template], trace_id='req-42')
        assert result.trace.trace_id == 'req-42'


class TestMultiSignalSelection:
    """Tests for multi-signal mode."""

    def setup_method(self):
        self.template = make_multi_signal_job_sheet()
        self.context = build_context(
            '\n'.join(MULTI_PAGE_TEXTS),
            page_texts=list(MULTI_PAGE_TEXTS),
            metadata=DocumentMetadata(page_count=2),
        )

    def test_combined_score(self):
        result = select_template_multi_signal(self.context, [self.template])
        assert result.multi_signal_enabled
        assert result.selected
        assert result.top_score == 94
        assert result.signal_breakdown.signal_count == 4
        assert result.trace.mode == 'multi_signal'

    def test_configured_mode(self):
        config = SelectorConfig(mode=SelectionMode.MULTI_SIGNAL)
        result = TemplateSelector(config=config).select(self.context, [self.template])
        assert result.multi_signal_enabled

    def test_weight_overrides(self):
        result = select_template_multi_signal(
            self.context, [self.template],
            weight_overrides={'token': 0.0, 'roi': 0.0, 'plausibility': 0.0, 'layout': 1.0},
        )
        assert result.top_score == 70
        assert result.weights_used.version == '1.0.0-custom'
        assert result.trace.weights.version == '1.0.0-custom'

    def test_low_reason_lists_weak_signals(self):
        result = select_template_multi_signal(DocumentContext("hello"), [self.template])
        assert result.reason_code == ReasonCode.LOW_CONFIDENCE
        assert result.block_reason.endswith('Low signals: [token:0, roi:0, plausibility:0]')

    def test_medium_tie_in_multi_signal_mode(self, tie_templates):
        result = select_template_multi_signal(DocumentContext("Document repair"), tie_templates)
        assert result.top_score == 55
        assert result.reason_code == ReasonCode.CONFLICT

    def test_token_mode_has_no_breakdown(self):
        result = select_template(self.context.document_text, [self.template])
        assert not result.multi_signal_enabled
        assert result.signal_breakdown is None
