"""
Template Selection

Ranks active templates for a document and turns the ranking into a
SelectionResult with an always-present trace.

Usage:
    from template_selector.selection import TemplateSelector
    from template_selector.document import DocumentContext

    selector = TemplateSelector(registry)
    result = selector.select(DocumentContext(document_text=text))
"""

from ..config import SelectionMode
from .ranker import (
    ContextMatches,
    Candidate,
    match_context,
    apply_metadata_boost,
    score_token_candidate,
    score_multi_signal_candidate,
    rank_candidates,
)
from .selector import (
    SelectionResult,
    TemplateSelector,
    select_template,
    select_template_multi_signal,
    build_context,
)

__all__ = [
    'SelectionMode',
    'ContextMatches',
    'Candidate',
    'match_context',
    'apply_metadata_boost',
    'score_token_candidate',
    'score_multi_signal_candidate',
    'rank_candidates',
    'SelectionResult',
    'TemplateSelector',
    'select_template',
    'select_template_multi_signal',
    'build_context',
]
