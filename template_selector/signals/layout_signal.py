"""
Layout Signal

Compares caller-supplied document metadata with a template's expected
layout. Starts neutral at 50 and moves by fixed amounts.
"""

from __future__ import annotations

from typing import Optional, List

from ..document import DocumentMetadata
from ..templates.template import LayoutExpectations
from .base import (
    NEUTRAL_SCORE,
    SignalEvidence,
    SignalResult,
    SignalType,
    clamp_score,
    confidence_from_score,
    neutral_signal,
)
from .weights import DEFAULT_WEIGHTS


PAGE_COUNT_ADJUSTMENT = 20
SECTION_BONUS = 30
FORM_TYPE_ADJUSTMENT = 10

DEFAULT_MIN_PAGES = 1
DEFAULT_MAX_PAGES = 10


def extract_layout_signal(
    metadata: DocumentMetadata,
    expected: Optional[LayoutExpectations] = None,
    weight: float = DEFAULT_WEIGHTS.layout,
) -> SignalResult:
    """
    Score document layout against expectations.

    Without expectations the result is a neutral 50, which still takes
    part in the weighted average.

    Args:
        metadata: Document metadata
        expected: Template layout expectations
        weight: Informational weight recorded on the result

    Returns:
        SignalResult of type LAYOUT
    """
    if expected is None:
        return neutral_signal(SignalType.LAYOUT, weight, 'No layout expectations defined')

    score = float(NEUTRAL_SCORE)
    matched: List[str] = []
    missing: List[str] = []

    if expected.min_pages is not None or expected.max_pages is not None:
        min_pages = expected.min_pages if expected.min_pages is not None else DEFAULT_MIN_PAGES
        max_pages = expected.max_pages if expected.max_pages is not None else DEFAULT_MAX_PAGES

        if min_pages <= metadata.page_count <= max_pages:
            score += PAGE_COUNT_ADJUSTMENT
            matched.append(f"pageCount:{metadata.page_count} (within {min_pages}-{max_pages})")
        else:
            score -= PAGE_COUNT_ADJUSTMENT
            missing.append(f"pageCount:{metadata.page_count} (expected {min_pages}-{max_pages})")

    if expected.expected_sections is not None and metadata.detected_sections is not None:
        detected = {s.lower() for s in metadata.detected_sections}
        found = 0
        for section in expected.expected_sections:
            if section.lower() in detected:
                found += 1
                matched.append(f"section:{section}")
            else:
                missing.append(f"section:{section}")

        if expected.expected_sections:
            score += found / len(expected.expected_sections) * SECTION_BONUS

    if expected.form_type is not None and metadata.form_type is not None:
        if metadata.form_type == expected.form_type:
            score += FORM_TYPE_ADJUSTMENT
            matched.append(f"formType:{metadata.form_type.value}")
        else:
            score -= FORM_TYPE_ADJUSTMENT
            missing.append(f"formType:{metadata.form_type.value} (expected {expected.form_type.value})")

    final = clamp_score(score)

    return SignalResult(
        signal_type=SignalType.LAYOUT,
        score=final,
        weight=weight,
        confidence=confidence_from_score(final),
        evidence=SignalEvidence(
            matched=tuple(matched),
            missing=tuple(missing),
            details={
                'page_count': metadata.page_count,
                'form_type': metadata.form_type.value if metadata.form_type else None,
                'detected_sections': list(metadata.detected_sections) if metadata.detected_sections is not None else None,
            },
        ),
    )
