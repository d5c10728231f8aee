"""
Candidate Ranker

Scores every active template for one document and sorts the results
deterministically (score descending, slug ascending).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Sequence, Tuple

from ..config import SelectionMode
from ..decision.decision_engine import DEFAULT_POLICY, SelectionPolicy, sort_candidates
from ..document import DocumentContext, MatchingMetadata
from ..signals.base import ConfidenceBand, SignalResult
from ..signals.combiner import MultiSignalResult, combine_signals
from ..signals.layout_signal import extract_layout_signal
from ..signals.plausibility_signal import extract_plausibility_signal
from ..signals.roi_signal import extract_roi_signal
from ..signals.token_signal import extract_token_signal
from ..signals.weights import DEFAULT_WEIGHTS, VersionedWeights
from ..templates.template import TemplateCandidate
from ..text.tokenizer import TokenizedDocument


CLIENT_BOOST = 10
ASSET_TYPE_BOOST = 5
WORK_TYPE_BOOST = 5


@dataclass(frozen=True)
class ContextMatches:
    """Which business-context fields matched the template."""
    client: bool = False
    asset_type: bool = False
    work_type: bool = False

    @property
    def boost(self) -> int:
        return (
            (CLIENT_BOOST if self.client else 0)
            + (ASSET_TYPE_BOOST if self.asset_type else 0)
            + (WORK_TYPE_BOOST if self.work_type else 0)
        )

    def to_dict(self) -> Dict[str, bool]:
        return {'client': self.client, 'asset_type': self.asset_type, 'work_type': self.work_type}


@dataclass(frozen=True)
class Candidate:
    """
    Score of one template version for one document.

    score includes the metadata boost; base_score is the score before it.
    """
    template_id: str
    version_id: str
    template_slug: str
    score: int
    confidence: ConfidenceBand
    matched_tokens: Tuple[str, ...] = ()
    missing_required: Tuple[str, ...] = ()
    base_score: int = 0
    form_code_match: bool = False
    context_matches: ContextMatches = field(default_factory=ContextMatches)
    token_signal: Optional[SignalResult] = None
    multi_signal: Optional[MultiSignalResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            'template_id': self.template_id,
            'version_id': self.version_id,
            'template_slug': self.template_slug,
            'score': self.score,
            'base_score': self.base_score,
            'confidence': self.confidence.value,
            'matched_tokens': list(self.matched_tokens),
            'missing_required': list(self.missing_required),
            'form_code_match': self.form_code_match,
            'context_matches': self.context_matches.to_dict(),
        }
        if self.multi_signal is not None:
            data['multi_signal'] = self.multi_signal.to_dict()
        return data


def match_context(
    template: TemplateCandidate,
    metadata: Optional[MatchingMetadata],
) -> ContextMatches:
    """Compare caller business context with a template's."""
    if metadata is None:
        return ContextMatches()
    return ContextMatches(
        client=bool(metadata.client) and template.client == metadata.client,
        asset_type=bool(metadata.asset_type) and template.asset_type == metadata.asset_type,
        work_type=bool(metadata.work_type) and template.work_type == metadata.work_type,
    )


def apply_metadata_boost(score: int, matches: ContextMatches) -> int:
    """Add each matching boost in turn, clamping to 100 after each one."""
    for matched, amount in (
        (matches.client, CLIENT_BOOST),
        (matches.asset_type, ASSET_TYPE_BOOST),
        (matches.work_type, WORK_TYPE_BOOST),
    ):
        if matched:
            score = min(100, score + amount)
    return score


def _form_code_matched(signal: SignalResult) -> bool:
    return any(m.startswith('REGEX:') for m in signal.evidence.matched)


def score_token_candidate(
    template: TemplateCandidate,
    document: TokenizedDocument,
    context: DocumentContext,
    policy: SelectionPolicy = DEFAULT_POLICY,
    weights: VersionedWeights = DEFAULT_WEIGHTS,
) -> Candidate:
    """Legacy single-signal score for one template."""
    token = extract_token_signal(document, template.selection_config, weights.token)
    matches = match_context(template, context.matching_metadata)
    score = apply_metadata_boost(token.score, matches)

    return Candidate(
        template_id=template.template_id,
        version_id=template.version_id,
        template_slug=template.template_slug,
        score=score,
        confidence=policy.band_for(score),
        matched_tokens=token.evidence.matched,
        missing_required=token.evidence.missing,
        base_score=token.score,
        form_code_match=_form_code_matched(token),
        context_matches=matches,
        token_signal=token,
    )


def score_multi_signal_candidate(
    template: TemplateCandidate,
    document: TokenizedDocument,
    context: DocumentContext,
    policy: SelectionPolicy = DEFAULT_POLICY,
    weights: VersionedWeights = DEFAULT_WEIGHTS,
) -> Candidate:
    """
    Multi-signal score for one template.

    Layout is only scored when the caller supplied document metadata;
    ROI and plausibility fall back to neutral scores when the template
    configures nothing for them.
    """
    signals: List[SignalResult] = []

    token = extract_token_signal(document, template.selection_config, weights.token)
    signals.append(token)

    if context.metadata is not None:
        signals.append(extract_layout_signal(context.metadata, template.layout_expectations, weights.layout))

    signals.append(extract_roi_signal(context.document_text, context.pages, template.roi_config, weights.roi))
    signals.append(extract_plausibility_signal(context.document_text, template.expected_fields, weights.plausibility))

    combined = combine_signals(signals, weights)
    matches = match_context(template, context.matching_metadata)
    score = apply_metadata_boost(combined.combined_score, matches)

    return Candidate(
        template_id=template.template_id,
        version_id=template.version_id,
        template_slug=template.template_slug,
        score=score,
        confidence=policy.band_for(score),
        matched_tokens=token.evidence.matched,
        missing_required=token.evidence.missing,
        base_score=combined.combined_score,
        form_code_match=_form_code_matched(token),
        context_matches=matches,
        token_signal=token,
        multi_signal=combined,
    )


def rank_candidates(
    templates: Sequence[TemplateCandidate],
    document: TokenizedDocument,
    context: DocumentContext,
    mode: SelectionMode = SelectionMode.TOKEN,
    policy: SelectionPolicy = DEFAULT_POLICY,
    weights: VersionedWeights = DEFAULT_WEIGHTS,
) -> List[Candidate]:
    """
    Score and sort all templates.

    Args:
        templates: Read-only snapshot of active templates
        document: Tokenized document text
        context: Caller-supplied document context
        mode: Scoring mode
        policy: Thresholds used for candidate bands
        weights: Signal weights (multi-signal mode)

    Returns:
        Candidates sorted by score descending, then slug ascending
    """
    scorer = score_multi_signal_candidate if mode == SelectionMode.MULTI_SIGNAL else score_token_candidate
    return sort_candidates([scorer(t, document, context, policy, weights) for t in templates])
