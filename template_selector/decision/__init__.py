"""
Decision Engine Package

Turns ranked template candidates into one canonical decision.

Usage:
    from template_selector.decision import DecisionEngine, SelectionPolicy

    engine = DecisionEngine(SelectionPolicy())
    decision = engine.decide(candidates, explicit_template_id=None)

    if decision.decision_type.needs_review:
        send_to_review(decision.block_reason)
"""

from .decision_engine import (
    DecisionType,
    ReasonCode,
    SelectionDecision,
    SelectionPolicy,
    DecisionEngine,
    DEFAULT_POLICY,
    sort_candidates,
)

__all__ = [
    'DecisionType',
    'ReasonCode',
    'SelectionDecision',
    'SelectionPolicy',
    'DecisionEngine',
    'DEFAULT_POLICY',
    'sort_candidates',
]
