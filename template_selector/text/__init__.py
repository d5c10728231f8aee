"""
Text Normalization Package

Turns raw OCR/document text into the token forms the signal extractors
match against.

Usage:
    from template_selector.text import tokenize_document, get_field_patterns

    doc = tokenize_document("JOB SHEET - Ref: JOB-123")
    doc.contains('sheet')          # True
    get_field_patterns('customerSignature')
"""

from .tokenizer import (
    TokenizedDocument,
    tokenize_text,
    tokenize_document,
    normalize_text,
)
from .field_patterns import (
    FIELD_SYNONYMS,
    get_field_patterns,
    split_field_words,
    text_mentions_field,
)

__all__ = [
    'TokenizedDocument',
    'tokenize_text',
    'tokenize_document',
    'normalize_text',
    'FIELD_SYNONYMS',
    'get_field_patterns',
    'split_field_words',
    'text_mentions_field',
]
