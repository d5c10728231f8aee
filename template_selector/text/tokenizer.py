"""
Tokenizer

Normalizes document text into an ordered token sequence.

Rules:
- lower-case everything
- every character that is neither a word character nor whitespace becomes a space
- split on whitespace, drop empty tokens

Token order is preserved so positional heuristics downstream can rely on it.
Membership tests use the de-duplicated vocabulary, and anything that needs a
"joined" form (form-code regexes) uses the unique tokens in first-seen order,
never set iteration order, so results are identical across processes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple, FrozenSet


_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """
    Lower-case text and replace punctuation with single spaces.

    Args:
        text: Raw document text

    Returns:
        Normalized text with collapsed whitespace
    """
    if not text:
        return ""

    text = _NON_WORD.sub(' ', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def tokenize_text(text: str) -> List[str]:
    """
    Split text into normalized tokens.

    Args:
        text: Raw document text (may be empty)

    Returns:
        Ordered list of tokens; empty input yields an empty list
    """
    if not text:
        return []

    return [t for t in _WHITESPACE.split(_NON_WORD.sub(' ', text.lower())) if t]


@dataclass(frozen=True)
class TokenizedDocument:
    """
    Tokens of one document.

    Created fresh per selection call and never shared between calls.
    """
    tokens: Tuple[str, ...]
    unique_tokens: Tuple[str, ...]
    vocabulary: FrozenSet[str]

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> 'TokenizedDocument':
        ordered = tuple(tokens)
        unique = tuple(dict.fromkeys(ordered))
        return cls(tokens=ordered, unique_tokens=unique, vocabulary=frozenset(unique))

    @property
    def joined(self) -> str:
        """Unique tokens in first-seen order, separated by single spaces."""
        return ' '.join(self.unique_tokens)

    @property
    def normalized_text(self) -> str:
        """All tokens in document order, separated by single spaces."""
        return ' '.join(self.tokens)

    def contains(self, token: str) -> bool:
        return token.lower() in self.vocabulary

    def __len__(self) -> int:
        return len(self.tokens)


def tokenize_document(text: str) -> TokenizedDocument:
    """Tokenize text into a TokenizedDocument."""
    return TokenizedDocument.from_tokens(tokenize_text(text))
