"""
Signal Combiner

Merges per-type signal results into one weighted score. Weights always come
from the VersionedWeights in use, never from SignalResult.weight.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, List, Dict, Any, Sequence, Tuple

from .base import (
    ConfidenceBand,
    SignalResult,
    SignalType,
    confidence_from_score,
    round_half_up,
)
from .weights import DEFAULT_WEIGHTS, VersionedWeights


@dataclass(frozen=True)
class MultiSignalResult:
    """Combined score of all signals for one candidate."""
    combined_score: int
    signals: Tuple[SignalResult, ...]
    confidence: ConfidenceBand
    signal_count: int
    high_confidence_signals: int
    weak_signals: Tuple[SignalType, ...]
    weights_used: VersionedWeights

    def get_signal(self, signal_type: SignalType) -> Optional[SignalResult]:
        for signal in self.signals:
            if signal.signal_type == signal_type:
                return signal
        return None

    @property
    def weak_signal_results(self) -> List[SignalResult]:
        return [s for s in self.signals if s.signal_type in self.weak_signals]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'combined_score': self.combined_score,
            'signals': [s.to_dict() for s in self.signals],
            'confidence': self.confidence.value,
            'combined_evidence': {
                'signal_count': self.signal_count,
                'high_confidence_signals': self.high_confidence_signals,
                'weak_signals': [t.value for t in self.weak_signals],
            },
            'weights_used': self.weights_used.to_dict(),
        }


def combine_signals(
    signals: Sequence[SignalResult],
    weights: VersionedWeights = DEFAULT_WEIGHTS,
    overrides: Optional[Dict[str, float]] = None,
) -> MultiSignalResult:
    """
    Combine signal results into a weighted average.

    A partial signal list is accepted. With no signals, or a total weight
    of zero, the combined score is 0 and the confidence LOW.

    Args:
        signals: Signal results, ideally one per type
        weights: Versioned weight set
        overrides: Per-call weight overrides by signal type name

    Returns:
        MultiSignalResult
    """
    weights_used = weights.with_overrides(overrides)

    reweighted = tuple(
        replace(s, weight=weights_used.weight_for(s.signal_type)) for s in signals
    )

    total_weight = sum(s.weight for s in reweighted)
    if total_weight > 0:
        combined = round_half_up(sum(s.score * s.weight for s in reweighted) / total_weight)
        confidence = confidence_from_score(combined)
    else:
        combined = 0
        confidence = ConfidenceBand.LOW

    return MultiSignalResult(
        combined_score=combined,
        signals=reweighted,
        confidence=confidence,
        signal_count=len(reweighted),
        high_confidence_signals=sum(1 for s in reweighted if s.confidence == ConfidenceBand.HIGH),
        weak_signals=tuple(s.signal_type for s in reweighted if s.confidence == ConfidenceBand.LOW),
        weights_used=weights_used,
    )
