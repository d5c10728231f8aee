"""
Decision Engine

Converts a ranked candidate list into exactly one terminal decision.

Decision Types:
- AUTO_SELECT: The top candidate can be processed without a human
- REVIEW_QUEUE: A human must pick the template (CONFLICT or LOW_CONFIDENCE)
- HARD_STOP: The pipeline cannot continue (PIPELINE_ERROR, with a fix path)

Decision Rules (in order):
1. An explicit template id found among the candidates is auto-selected;
   one that is not found is a hard stop
2. No candidates is a hard stop
3. HIGH top candidate is auto-selected
4. MEDIUM top candidate is auto-selected only with a clear gap to the runner-up,
   otherwise it is a CONFLICT review
5. LOW top candidate is a LOW_CONFIDENCE review, whatever the gap

The engine is a pure function of its inputs: it never retries, never
mutates the candidates and holds no state between calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Dict, Any, Sequence, TYPE_CHECKING

from loguru import logger

from ..signals.base import (
    ConfidenceBand,
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    confidence_from_score,
)

if TYPE_CHECKING:
    from ..selection.ranker import Candidate


FIX_UNKNOWN_TEMPLATE = 'Verify templateId exists and is active'
FIX_NO_CANDIDATES = 'Ensure at least one template is active and matches document fingerprint'


class DecisionType(Enum):
    """Terminal outcomes of a selection."""

    AUTO_SELECT = "AUTO_SELECT"
    REVIEW_QUEUE = "REVIEW_QUEUE"
    HARD_STOP = "HARD_STOP"

    @property
    def is_acceptable(self) -> bool:
        """Check if this decision allows automated processing."""
        return self == DecisionType.AUTO_SELECT

    @property
    def needs_review(self) -> bool:
        """Check if this decision routes to the review queue."""
        return self == DecisionType.REVIEW_QUEUE

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        names = {
            DecisionType.AUTO_SELECT: "✓ Auto-select",
            DecisionType.REVIEW_QUEUE: "⚠ Review Queue",
            DecisionType.HARD_STOP: "✗ Hard Stop",
        }
        return names.get(self, self.name)


class ReasonCode(Enum):
    """Canonical, closed set of block and failure reasons."""

    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    CONFLICT = "CONFLICT"
    PIPELINE_ERROR = "PIPELINE_ERROR"

    @property
    def routes_to_review(self) -> bool:
        """Whether the review queue may receive this code."""
        return self in (ReasonCode.LOW_CONFIDENCE, ReasonCode.CONFLICT)

    @property
    def display_message(self) -> str:
        messages = {
            ReasonCode.LOW_CONFIDENCE: "No template matched with enough confidence",
            ReasonCode.CONFLICT: "Several templates matched equally well",
            ReasonCode.PIPELINE_ERROR: "Selection could not run as requested",
        }
        return messages.get(self, self.name)


@dataclass(frozen=True)
class SelectionDecision:
    """
    One decision variant.

    AUTO_SELECT carries template_id and no reason code; REVIEW_QUEUE carries
    CONFLICT or LOW_CONFIDENCE; HARD_STOP carries PIPELINE_ERROR and a fix path.
    """
    decision_type: DecisionType
    reason: str
    template_id: Optional[str] = None
    reason_code: Optional[ReasonCode] = None
    fix_path: Optional[str] = None

    @property
    def is_canonical(self) -> bool:
        """Check that the variant's fields are paired the way its type requires."""
        if self.decision_type == DecisionType.AUTO_SELECT:
            return self.template_id is not None and self.reason_code is None and self.fix_path is None
        if self.decision_type == DecisionType.REVIEW_QUEUE:
            return (
                self.reason_code is not None
                and self.reason_code.routes_to_review
                and self.template_id is None
                and self.fix_path is None
            )
        return (
            self.reason_code == ReasonCode.PIPELINE_ERROR
            and bool(self.fix_path)
            and self.template_id is None
        )

    @property
    def block_reason(self) -> Optional[str]:
        """Reason prefixed by its code, or None when auto-selected."""
        if self.reason_code is None:
            return None
        text = f"{self.reason_code.value}: {self.reason}"
        if self.fix_path:
            text += f" (fix: {self.fix_path})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            'type': self.decision_type.value,
            'reason': self.reason,
        }
        if self.template_id is not None:
            data['template_id'] = self.template_id
        if self.reason_code is not None:
            data['reason_code'] = self.reason_code.value
        if self.fix_path is not None:
            data['fix_path'] = self.fix_path
        return data

    @classmethod
    def auto_select(cls, template_id: str, reason: str) -> 'SelectionDecision':
        return cls(DecisionType.AUTO_SELECT, reason, template_id=template_id)

    @classmethod
    def review(cls, reason_code: ReasonCode, reason: str) -> 'SelectionDecision':
        return cls(DecisionType.REVIEW_QUEUE, reason, reason_code=reason_code)

    @classmethod
    def hard_stop(cls, reason: str, fix_path: str) -> 'SelectionDecision':
        return cls(DecisionType.HARD_STOP, reason, reason_code=ReasonCode.PIPELINE_ERROR, fix_path=fix_path)


@dataclass(frozen=True)
class SelectionPolicy:
    """
    Thresholds the decision engine applies.

    selection_budget_ms is advisory: the engine reports duration but only
    batch callers act on it.
    """
    high_threshold: float = HIGH_THRESHOLD
    medium_threshold: float = MEDIUM_THRESHOLD
    ambiguity_gap: float = 10
    selection_budget_ms: float = 5000

    def __post_init__(self):
        if not 0 <= self.medium_threshold <= self.high_threshold <= 100:
            raise ValueError(
                f"Thresholds must satisfy 0 <= medium ({self.medium_threshold}) "
                f"<= high ({self.high_threshold}) <= 100"
            )
        if self.ambiguity_gap < 0:
            raise ValueError(f"ambiguity_gap must be >= 0, got {self.ambiguity_gap}")
        if self.selection_budget_ms <= 0:
            raise ValueError(f"selection_budget_ms must be > 0, got {self.selection_budget_ms}")

    def band_for(self, score: float) -> ConfidenceBand:
        return confidence_from_score(score, self.high_threshold, self.medium_threshold)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'high_threshold': self.high_threshold,
            'medium_threshold': self.medium_threshold,
            'ambiguity_gap': self.ambiguity_gap,
            'selection_budget_ms': self.selection_budget_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectionPolicy':
        defaults = cls()
        return cls(
            high_threshold=data.get('high_threshold', defaults.high_threshold),
            medium_threshold=data.get('medium_threshold', defaults.medium_threshold),
            ambiguity_gap=data.get('ambiguity_gap', defaults.ambiguity_gap),
            selection_budget_ms=data.get('selection_budget_ms', defaults.selection_budget_ms),
        )


DEFAULT_POLICY = SelectionPolicy()


def sort_candidates(candidates: Sequence['Candidate']) -> List['Candidate']:
    """Score descending, ties broken by slug ascending."""
    return sorted(candidates, key=lambda c: (-c.score, c.template_slug))


class DecisionEngine:
    """
    Decision engine for template selection.

    Usage:
        engine = DecisionEngine(SelectionPolicy(ambiguity_gap=15))

        decision = engine.decide(ranked_candidates)
        if decision.decision_type.is_acceptable:
            process(decision.template_id)
    """

    def __init__(self, policy: Optional[SelectionPolicy] = None):
        self.policy = policy or DEFAULT_POLICY

    def decide(
        self,
        candidates: Sequence['Candidate'],
        explicit_template_id: Optional[str] = None,
    ) -> SelectionDecision:
        """
        Decide what to do with a ranked candidate list.

        Args:
            candidates: Scored candidates (any order, sorted here)
            explicit_template_id: Caller override by template id or slug

        Returns:
            SelectionDecision
        """
        ranked = sort_candidates(candidates)

        if explicit_template_id:
            return self._decide_explicit(ranked, explicit_template_id)

        if not ranked:
            return SelectionDecision.hard_stop('No template candidates found', FIX_NO_CANDIDATES)

        top = ranked[0]
        runner_up = ranked[1] if len(ranked) > 1 else None
        gap = top.score - runner_up.score if runner_up is not None else math.inf
        band = self.policy.band_for(top.score)

        if band == ConfidenceBand.HIGH:
            return SelectionDecision.auto_select(
                top.template_id,
                f"HIGH confidence (score={top.score})",
            )

        if band == ConfidenceBand.MEDIUM:
            if gap >= self.policy.ambiguity_gap:
                gap_text = 'no runner-up' if runner_up is None else f"gap={gap}"
                return SelectionDecision.auto_select(
                    top.template_id,
                    f"MEDIUM confidence with clear gap (score={top.score}, {gap_text})",
                )
            return SelectionDecision.review(
                ReasonCode.CONFLICT,
                f"MEDIUM confidence with ambiguous gap between "
                f"\"{top.template_slug}\" ({top.score}) and \"{runner_up.template_slug}\" ({runner_up.score}) "
                f"(gap={gap}, threshold={self.policy.ambiguity_gap})",
            )

        return SelectionDecision.review(
            ReasonCode.LOW_CONFIDENCE,
            f"LOW confidence (score={top.score}, best=\"{top.template_slug}\") - cannot auto-select; "
            f"provide explicit templateId or improve document quality",
        )

    def _decide_explicit(
        self,
        ranked: List['Candidate'],
        explicit_template_id: str,
    ) -> SelectionDecision:
        for candidate in ranked:
            if explicit_template_id in (candidate.template_id, candidate.template_slug):
                return SelectionDecision.auto_select(candidate.template_id, 'Explicit templateId provided')

        logger.warning(f"Explicit template '{explicit_template_id}' is not an active candidate")
        return SelectionDecision.hard_stop(
            f"Explicit templateId \"{explicit_template_id}\" not found in candidates",
            FIX_UNKNOWN_TEMPLATE,
        )
