"""
Signals

Four independent scorers (token, layout, ROI, plausibility) and the
versioned weighted combiner.

Usage:
    from template_selector.signals import extract_token_signal, combine_signals

    token = extract_token_signal(tokenize_document(text), template.selection_config)
    combined = combine_signals([token, layout, roi, plausibility])
"""

from .base import (
    SignalType,
    ConfidenceBand,
    SignalEvidence,
    SignalResult,
    confidence_from_score,
    round_half_up,
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    NEUTRAL_SCORE,
)
from .weights import (
    VersionedWeights,
    DEFAULT_WEIGHTS,
    WEIGHTS_VERSION,
)
from .token_signal import extract_token_signal, max_token_score
from .layout_signal import extract_layout_signal
from .roi_signal import extract_roi_signal
from .plausibility_signal import extract_plausibility_signal
from .combiner import MultiSignalResult, combine_signals

__all__ = [
    'SignalType',
    'ConfidenceBand',
    'SignalEvidence',
    'SignalResult',
    'confidence_from_score',
    'round_half_up',
    'HIGH_THRESHOLD',
    'MEDIUM_THRESHOLD',
    'NEUTRAL_SCORE',
    'VersionedWeights',
    'DEFAULT_WEIGHTS',
    'WEIGHTS_VERSION',
    'extract_token_signal',
    'max_token_score',
    'extract_layout_signal',
    'extract_roi_signal',
    'extract_plausibility_signal',
    'MultiSignalResult',
    'combine_signals',
]
