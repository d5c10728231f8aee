"""
Template Selector

Entry point of the selection engine: tokenize, rank, decide and trace.

Every call works on values it is given (document context, a snapshot of
active templates, configuration) and shares no mutable state with other
calls, so one selector can serve many worker threads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Sequence, Tuple

from loguru import logger

from ..config import DEFAULT_CONFIG, SelectionMode, SelectorConfig
from ..decision.decision_engine import (
    DecisionEngine,
    DecisionType,
    ReasonCode,
    SelectionDecision,
)
from ..document import DocumentContext, DocumentMetadata, MatchingMetadata
from ..signals.base import ConfidenceBand, format_signals
from ..signals.combiner import MultiSignalResult
from ..signals.weights import VersionedWeights
from ..templates.registry import TemplateRegistry
from ..templates.template import TemplateCandidate
from ..text.tokenizer import tokenize_document
from ..trace.trace_builder import SelectionTrace, TraceBuilder
from .ranker import Candidate, rank_candidates


@dataclass(frozen=True)
class SelectionResult:
    """
    Outcome of one selection.

    selected implies auto_processing_allowed and no block_reason.
    template_id, version_id and template_slug are only set when selected.
    """
    selected: bool
    confidence_band: ConfidenceBand
    top_score: int
    runner_up_score: int
    score_gap: int
    candidates: Tuple[Candidate, ...]
    matched_tokens: Tuple[str, ...]
    auto_processing_allowed: bool
    decision: SelectionDecision
    trace: SelectionTrace
    weights_used: VersionedWeights
    template_id: Optional[str] = None
    version_id: Optional[str] = None
    template_slug: Optional[str] = None
    block_reason: Optional[str] = None
    reason_code: Optional[ReasonCode] = None
    multi_signal_enabled: bool = False
    signal_breakdown: Optional[MultiSignalResult] = None

    @property
    def duration_ms(self) -> float:
        return self.trace.duration_ms

    @property
    def decision_type(self) -> DecisionType:
        return self.decision.decision_type

    def to_dict(self, include_trace: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            'selected': self.selected,
            'template_id': self.template_id,
            'version_id': self.version_id,
            'template_slug': self.template_slug,
            'confidence_band': self.confidence_band.value,
            'top_score': self.top_score,
            'runner_up_score': self.runner_up_score,
            'score_gap': self.score_gap,
            'candidates': [c.to_dict() for c in self.candidates],
            'matched_tokens': list(self.matched_tokens),
            'auto_processing_allowed': self.auto_processing_allowed,
            'block_reason': self.block_reason,
            'reason_code': self.reason_code.value if self.reason_code else None,
            'decision': self.decision.to_dict(),
            'multi_signal_enabled': self.multi_signal_enabled,
            'signal_breakdown': self.signal_breakdown.to_dict() if self.signal_breakdown else None,
            'weights_used': self.weights_used.to_dict(),
            'trace_id': self.trace.trace_id,
        }
        if include_trace:
            data['trace'] = self.trace.to_dict()
        return data


def _block_reason(
    decision: SelectionDecision,
    ranked: List[Candidate],
) -> Optional[str]:
    """Decision block reason, enriched with the leader's weak signals when known."""
    reason = decision.block_reason
    if reason is None or not ranked or ranked[0].multi_signal is None:
        return reason

    leader = ranked[0].multi_signal
    if decision.reason_code == ReasonCode.CONFLICT and leader.weak_signals:
        reason += f" Weak signals: {', '.join(t.value for t in leader.weak_signals)}."
    elif decision.reason_code == ReasonCode.LOW_CONFIDENCE and leader.weak_signals:
        reason += f" Low signals: [{format_signals(leader.weak_signal_results)}]"
    return reason


class TemplateSelector:
    """
    Selects the template for a document.

    Usage:
        selector = TemplateSelector(registry, config)

        result = selector.select(DocumentContext(document_text=text))
        if result.selected:
            extract_with(result.template_id)
        else:
            route(result.reason_code, result.block_reason)
    """

    def __init__(
        self,
        registry: Optional[TemplateRegistry] = None,
        config: Optional[SelectorConfig] = None,
    ):
        """
        Initialize selector.

        Args:
            registry: Source of active templates when select() is not given a snapshot
            config: Mode, policy and weights
        """
        self.registry = registry
        self.config = config or DEFAULT_CONFIG

    def select(
        self,
        context: DocumentContext,
        templates: Optional[Sequence[TemplateCandidate]] = None,
        mode: Optional[SelectionMode] = None,
        weight_overrides: Optional[Dict[str, float]] = None,
        trace_id: Optional[str] = None,
    ) -> SelectionResult:
        """
        Run one selection.

        Args:
            context: Document text, pages, metadata and overrides
            templates: Snapshot of active templates; taken from the registry when None
            mode: Scoring mode; the configured one when None
            weight_overrides: Per-call signal weight overrides
            trace_id: Caller-supplied trace id

        Returns:
            SelectionResult carrying its SelectionTrace
        """
        started = time.perf_counter()
        mode = SelectionMode.parse(mode) if mode is not None else self.config.mode
        policy = self.config.policy
        weights = self.config.weights.with_overrides(weight_overrides)
        snapshot = tuple(templates) if templates is not None else self._snapshot()

        document = tokenize_document(context.document_text)
        ranked = rank_candidates(snapshot, document, context, mode, policy, weights)
        decision = DecisionEngine(policy).decide(ranked, context.explicit_template_id)

        trace = (
            TraceBuilder(policy, weights, mode.value, started_at=started)
            .set_input(document, len(context.document_text or ''))
            .set_candidates(ranked)
            .set_decision(decision)
            .set_explicit_template_id(context.explicit_template_id)
            .set_document_id(context.document_id)
            .set_trace_id(trace_id)
            .build()
        )

        result = self._build_result(ranked, decision, trace, weights, mode)
        elapsed = (time.perf_counter() - started) * 1000

        if result.selected:
            logger.info(
                f"Selected template {result.template_slug} "
                f"(score={result.top_score}, band={result.confidence_band.value}, {elapsed:.1f}ms)"
            )
        else:
            logger.warning(f"Template selection blocked: {result.block_reason}")

        return result

    def _snapshot(self) -> Tuple[TemplateCandidate, ...]:
        if self.registry is None:
            return ()
        return tuple(self.registry.list_active_templates())

    def _build_result(
        self,
        ranked: List[Candidate],
        decision: SelectionDecision,
        trace: SelectionTrace,
        weights: VersionedWeights,
        mode: SelectionMode,
    ) -> SelectionResult:
        top = ranked[0] if ranked else None
        runner_up = ranked[1] if len(ranked) > 1 else None
        top_score = top.score if top else 0
        runner_up_score = runner_up.score if runner_up else 0
        allowed = decision.decision_type.is_acceptable

        chosen = None
        if allowed:
            chosen = next(c for c in ranked if c.template_id == decision.template_id)

        multi = mode == SelectionMode.MULTI_SIGNAL
        return SelectionResult(
            selected=allowed,
            confidence_band=top.confidence if top else ConfidenceBand.LOW,
            top_score=top_score,
            runner_up_score=runner_up_score,
            score_gap=top_score - runner_up_score,
            candidates=tuple(ranked),
            matched_tokens=(chosen or top).matched_tokens if (chosen or top) else (),
            auto_processing_allowed=allowed,
            decision=decision,
            trace=trace,
            weights_used=weights,
            template_id=chosen.template_id if chosen else None,
            version_id=chosen.version_id if chosen else None,
            template_slug=chosen.template_slug if chosen else None,
            block_reason=None if allowed else _block_reason(decision, ranked),
            reason_code=decision.reason_code,
            multi_signal_enabled=multi,
            signal_breakdown=top.multi_signal if (multi and top) else None,
        )


def select_template(
    document_text: str,
    templates: Sequence[TemplateCandidate],
    matching_metadata: Optional[MatchingMetadata] = None,
    explicit_template_id: Optional[str] = None,
    config: Optional[SelectorConfig] = None,
) -> SelectionResult:
    """
    Select a template by token fingerprint alone.

    Args:
        document_text: Document text
        templates: Snapshot of active templates
        matching_metadata: Optional client/asset/work type context
        explicit_template_id: Optional caller override
        config: Policy and weights

    Returns:
        SelectionResult
    """
    context = DocumentContext(
        document_text=document_text,
        matching_metadata=matching_metadata,
        explicit_template_id=explicit_template_id,
    )
    return TemplateSelector(config=config).select(context, templates, mode=SelectionMode.TOKEN)


def select_template_multi_signal(
    context: DocumentContext,
    templates: Sequence[TemplateCandidate],
    config: Optional[SelectorConfig] = None,
    weight_overrides: Optional[Dict[str, float]] = None,
) -> SelectionResult:
    """
    Select a template using token, layout, ROI and plausibility signals.

    Args:
        context: Document context (pages and metadata improve the layout and ROI signals)
        templates: Snapshot of active templates
        config: Policy and weights
        weight_overrides: Per-call signal weight overrides

    Returns:
        SelectionResult with signal_breakdown of the top candidate
    """
    return TemplateSelector(config=config).select(
        context,
        templates,
        mode=SelectionMode.MULTI_SIGNAL,
        weight_overrides=weight_overrides,
    )


def build_context(
    document_text: str,
    page_texts: Optional[Sequence[str]] = None,
    metadata: Optional[DocumentMetadata] = None,
    **kwargs,
) -> DocumentContext:
    """Convenience constructor that freezes page texts into a tuple."""
    return DocumentContext(
        document_text=document_text,
        page_texts=tuple(page_texts) if page_texts is not None else None,
        metadata=metadata,
        **kwargs,
    )
