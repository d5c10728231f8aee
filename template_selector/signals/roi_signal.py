"""
ROI Signal

Checks that each expected region of interest has content on its page.
"""

from __future__ import annotations

from typing import Optional, List, Sequence

from ..templates.template import RoiConfig
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


# Pages longer than this count as "has content" for regions with no fields
MIN_REGION_TEXT_LENGTH = 50


def extract_roi_signal(
    document_text: str,
    page_texts: Sequence[str],
    roi_config: Optional[RoiConfig] = None,
    weight: float = DEFAULT_WEIGHTS.roi,
) -> SignalResult:
    """
    Score how many ROI regions have content.

    Args:
        document_text: Full document text
        page_texts: Text per page, page 1 first
        roi_config: Template ROI configuration
        weight: Informational weight recorded on the result

    Returns:
        SignalResult of type ROI
    """
    if roi_config is None or not roi_config.regions:
        return neutral_signal(SignalType.ROI, weight, 'No ROI configuration defined')

    matched: List[str] = []
    missing: List[str] = []
    regions_with_content = 0

    for region in roi_config.regions:
        index = region.page - 1
        page_text = page_texts[index] if 0 <= index < len(page_texts) else ''

        if region.fields:
            found_fields = [f for f in region.fields if text_mentions_field(page_text, f)]
            has_content = bool(found_fields)
        else:
            found_fields = []
            has_content = len(page_text) > MIN_REGION_TEXT_LENGTH

        if has_content:
            regions_with_content += 1
            matched.append(f"roi:{region.name} (fields: {', '.join(found_fields) or 'content present'})")
        else:
            missing.append(f"roi:{region.name} (page {region.page})")

    total = len(roi_config.regions)
    score = clamp_score(100 * regions_with_content / total)

    return SignalResult(
        signal_type=SignalType.ROI,
        score=score,
        weight=weight,
        confidence=confidence_from_score(score),
        evidence=SignalEvidence(
            matched=tuple(matched),
            missing=tuple(missing),
            details={
                'total_regions': total,
                'matched_regions': regions_with_content,
                'region_names': [r.name for r in roi_config.regions],
                'document_length': len(document_text),
            },
        ),
    )
