"""
Plausibility Signal

Checks that the critical fields a template declares look present in the
document text.
"""

from __future__ import annotations

import re
from typing import List, Sequence, Dict

from loguru import logger

from ..templates.template import FieldExpectation
from ..text.field_patterns import text_mentions_field
from .base import (
    SignalEvidence,
    SignalResult,
    SignalType,
    clamp_score,
    confidence_from_score,
    neutral_signal,
)
from .weights import DEFAULT_WEIGHTS


DATE_PATTERN = re.compile(r'\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}')

PATTERN_TYPES = ('pattern', 'regex')
KEYWORD_TYPES = ('string', 'required')


def _field_is_plausible(
    document_text: str,
    expectation: FieldExpectation,
    errors: Dict[str, str],
) -> bool:
    field_type = expectation.field_type.lower()

    if field_type == 'date':
        return DATE_PATTERN.search(document_text) is not None

    if field_type in PATTERN_TYPES:
        if not expectation.pattern:
            return False
        try:
            return re.search(expectation.pattern, document_text, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug(f"Invalid pattern for field {expectation.field}: {e}")
            errors[expectation.field] = str(e)
            return False

    if field_type in KEYWORD_TYPES:
        return text_mentions_field(document_text, expectation.field)

    return False


def extract_plausibility_signal(
    document_text: str,
    expected_fields: Sequence[FieldExpectation],
    weight: float = DEFAULT_WEIGHTS.plausibility,
) -> SignalResult:
    """
    Score the fraction of expected fields that look plausible.

    Args:
        document_text: Full document text
        expected_fields: Critical field expectations
        weight: Informational weight recorded on the result

    Returns:
        SignalResult of type PLAUSIBILITY
    """
    if not expected_fields:
        return neutral_signal(SignalType.PLAUSIBILITY, weight, 'No expected fields defined')

    matched: List[str] = []
    missing: List[str] = []
    errors: Dict[str, str] = {}

    for expectation in expected_fields:
        if _field_is_plausible(document_text, expectation, errors):
            matched.append(f"field:{expectation.field}")
        else:
            missing.append(f"field:{expectation.field}")

    score = clamp_score(100 * len(matched) / len(expected_fields))
    details = {
        'total_fields': len(expected_fields),
        'plausible_fields': len(matched),
    }
    if errors:
        details['pattern_errors'] = errors

    return SignalResult(
        signal_type=SignalType.PLAUSIBILITY,
        score=score,
        weight=weight,
        confidence=confidence_from_score(score),
        evidence=SignalEvidence(
            matched=tuple(matched),
            missing=tuple(missing),
            details=details,
        ),
    )
