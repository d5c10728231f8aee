"""
Token Signal

Keyword fingerprint match of a document against one template's
SelectionConfig.
"""

from __future__ import annotations

import re
from typing import List

from loguru import logger

from ..templates.template import SelectionConfig
from ..text.tokenizer import TokenizedDocument
from .base import (
    SignalEvidence,
    SignalResult,
    SignalType,
    confidence_from_score,
    round_half_up,
)
from .weights import DEFAULT_WEIGHTS


ALL_TOKEN_WEIGHT = 10
ANY_TOKEN_WEIGHT = 5
OPTIONAL_TOKEN_WEIGHT = 2
FORM_CODE_BONUS = 15
MISSING_ALL_PENALTY = 50
MISSING_ANY_PENALTY = 30


def max_token_score(config: SelectionConfig) -> float:
    """Theoretical maximum raw score achievable under a config."""
    total = sum(config.weight_for(t, ALL_TOKEN_WEIGHT) for t in config.required_tokens_all)
    if config.required_tokens_any:
        total += max(config.weight_for(t, ANY_TOKEN_WEIGHT) for t in config.required_tokens_any)
    if config.form_code_regex:
        total += FORM_CODE_BONUS
    total += sum(config.weight_for(t, OPTIONAL_TOKEN_WEIGHT) for t in config.optional_tokens)
    return total


def extract_token_signal(
    document: TokenizedDocument,
    config: SelectionConfig,
    weight: float = DEFAULT_WEIGHTS.token,
) -> SignalResult:
    """
    Score a document's tokens against a selection config.

    Args:
        document: Tokenized document
        config: Template selection config
        weight: Informational weight recorded on the result

    Returns:
        SignalResult of type TOKEN
    """
    matched: List[str] = []
    missing: List[str] = []
    details = {}
    score = 0.0

    all_present = True
    for token in config.required_tokens_all:
        if document.contains(token):
            matched.append(token)
            score += config.weight_for(token, ALL_TOKEN_WEIGHT)
        else:
            all_present = False
            missing.append(token)

    if not all_present:
        score = max(0.0, score - MISSING_ALL_PENALTY)

    any_present = not config.required_tokens_any
    for token in config.required_tokens_any:
        if document.contains(token):
            any_present = True
            matched.append(token)
            score += config.weight_for(token, ANY_TOKEN_WEIGHT)

    if not any_present:
        score = max(0.0, score - MISSING_ANY_PENALTY)
        missing.append(f"ANY({', '.join(config.required_tokens_any)})")

    if config.form_code_regex:
        label = f"REGEX:{config.form_code_regex}"
        try:
            found = re.search(config.form_code_regex, document.joined, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug(f"Invalid form code regex {config.form_code_regex!r}: {e}")
            details['regex_error'] = str(e)
            found = False

        if found:
            score += FORM_CODE_BONUS
            matched.append(label)
        else:
            missing.append(label)

    for token in config.optional_tokens:
        if document.contains(token):
            matched.append(f"optional:{token}")
            score += config.weight_for(token, OPTIONAL_TOKEN_WEIGHT)

    maximum = max_token_score(config)
    normalized = min(100, round_half_up(score / maximum * 100)) if maximum > 0 else 0

    details.update({
        'required_all_count': len(config.required_tokens_all),
        'required_any_count': len(config.required_tokens_any),
        'optional_count': len(config.optional_tokens),
        'matched_count': len(matched),
        'raw_score': score,
        'max_score': maximum,
    })

    return SignalResult(
        signal_type=SignalType.TOKEN,
        score=normalized,
        weight=weight,
        confidence=confidence_from_score(normalized),
        evidence=SignalEvidence(
            matched=tuple(matched),
            missing=tuple(missing),
            details=details,
        ),
    )
