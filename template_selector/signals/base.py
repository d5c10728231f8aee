"""
Signal Data Model

Shared types for the four signal extractors and the combiner.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Tuple


HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 50
NEUTRAL_SCORE = 50


class SignalType(Enum):
    """Independent evidence sources, in combination order."""

    TOKEN = "token"
    LAYOUT = "layout"
    ROI = "roi"
    PLAUSIBILITY = "plausibility"


class ConfidenceBand(Enum):
    """Classification of a 0-100 score against fixed thresholds."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def is_acceptable(self) -> bool:
        """Whether a candidate in this band may ever be auto-selected."""
        return self in (ConfidenceBand.HIGH, ConfidenceBand.MEDIUM)

    @property
    def display_name(self) -> str:
        names = {
            ConfidenceBand.HIGH: "✓ High",
            ConfidenceBand.MEDIUM: "○ Medium",
            ConfidenceBand.LOW: "✗ Low",
        }
        return names.get(self, self.name)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round and clamp to the 0-100 score range."""
    return max(0, min(100, round_half_up(value)))


def confidence_from_score(
    score: float,
    high_threshold: float = HIGH_THRESHOLD,
    medium_threshold: float = MEDIUM_THRESHOLD,
) -> ConfidenceBand:
    """
    Map a score to its confidence band.

    Args:
        score: Score in [0, 100]
        high_threshold: Minimum score for HIGH
        medium_threshold: Minimum score for MEDIUM

    Returns:
        ConfidenceBand
    """
    if score >= high_threshold:
        return ConfidenceBand.HIGH
    if score >= medium_threshold:
        return ConfidenceBand.MEDIUM
    return ConfidenceBand.LOW


@dataclass(frozen=True)
class SignalEvidence:
    """What a signal found and what it missed."""
    matched: Tuple[str, ...] = ()
    missing: Tuple[str, ...] = ()
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matched': list(self.matched),
            'missing': list(self.missing),
            'details': dict(self.details),
        }


@dataclass(frozen=True)
class SignalResult:
    """
    Output of one signal extractor for one candidate.

    weight is informational only; the combiner reassigns weights by type.
    """
    signal_type: SignalType
    score: int
    weight: float
    confidence: ConfidenceBand
    evidence: SignalEvidence = field(default_factory=SignalEvidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.signal_type.value,
            'score': self.score,
            'weight': self.weight,
            'confidence': self.confidence.value,
            'evidence': self.evidence.to_dict(),
        }


def neutral_signal(
    signal_type: SignalType,
    weight: float,
    reason: str,
) -> SignalResult:
    """A neutral score that still participates in the weighted average."""
    return SignalResult(
        signal_type=signal_type,
        score=NEUTRAL_SCORE,
        weight=weight,
        confidence=confidence_from_score(NEUTRAL_SCORE),
        evidence=SignalEvidence(details={'reason': reason}),
    )


def format_signals(signals: List[SignalResult]) -> str:
    """Compact 'type:score' listing used in block reasons."""
    return ', '.join(f"{s.signal_type.value}:{s.score}" for s in signals)
