"""
Fixture Runner

Runs selection fixtures and compares actual with expected outcomes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Sequence

from loguru import logger

from ..config import SelectionMode, SelectorConfig
from ..decision.decision_engine import ReasonCode
from ..document import DocumentContext
from ..selection.selector import SelectionResult, TemplateSelector
from ..signals.base import ConfidenceBand
from ..templates.builtin_templates import builtin_templates
from ..templates.template import TemplateCandidate
from .selection_fixtures import (
    ALL_SELECTION_FIXTURES,
    ExpectedOutcome,
    FixtureCategory,
    SelectionFixture,
    get_fixtures_by_category,
)


@dataclass(frozen=True)
class FixtureRunResult:
    fixture: SelectionFixture
    passed: bool
    actual_outcome: ExpectedOutcome
    actual_score: int
    actual_confidence_band: ConfidenceBand
    actual_template_slug: Optional[str] = None
    actual_block_reason: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fixture_id': self.fixture.id,
            'category': self.fixture.category.value,
            'passed': self.passed,
            'expected_outcome': self.fixture.expected_outcome.value,
            'actual_outcome': self.actual_outcome.value,
            'actual_score': self.actual_score,
            'actual_confidence_band': self.actual_confidence_band.value,
            'actual_template_slug': self.actual_template_slug,
            'actual_block_reason': self.actual_block_reason,
            'errors': list(self.errors),
        }


@dataclass
class FixtureSummary:
    """Totals of a fixture run, with a per-category breakdown."""
    results: List[FixtureRunResult]
    by_category: Dict[str, Dict[str, int]]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def all_passed(self) -> bool:
        return self.failed == 0


def classify_outcome(result: SelectionResult) -> ExpectedOutcome:
    """Map a selection result onto the fixture outcome vocabulary."""
    if not result.candidates:
        return ExpectedOutcome.NO_MATCH
    if not result.auto_processing_allowed:
        if result.reason_code == ReasonCode.CONFLICT:
            return ExpectedOutcome.AMBIGUITY_BLOCK
        return ExpectedOutcome.LOW_CONFIDENCE_BLOCK
    if result.confidence_band == ConfidenceBand.HIGH:
        return ExpectedOutcome.HIGH_CONFIDENCE_MATCH
    return ExpectedOutcome.MEDIUM_CONFIDENCE_MATCH


def run_fixture(
    fixture: SelectionFixture,
    templates: Optional[Sequence[TemplateCandidate]] = None,
    config: Optional[SelectorConfig] = None,
    mode: SelectionMode = SelectionMode.TOKEN,
) -> FixtureRunResult:
    """
    Run one fixture.

    Args:
        fixture: Fixture to run
        templates: Templates to select from; the built-in ones when None
        config: Selector configuration
        mode: Scoring mode

    Returns:
        FixtureRunResult listing every mismatch in errors
    """
    context = DocumentContext(
        document_text=fixture.document_text,
        page_texts=fixture.page_texts,
        metadata=fixture.metadata,
        document_id=fixture.id,
    )
    snapshot = list(templates) if templates is not None else builtin_templates()
    result = TemplateSelector(config=config).select(context, snapshot, mode=mode)

    errors: List[str] = []
    actual = classify_outcome(result)

    if actual != fixture.expected_outcome:
        errors.append(f"Expected outcome {fixture.expected_outcome.value}, got {actual.value}")

    if fixture.expected_confidence_band and result.confidence_band != fixture.expected_confidence_band:
        errors.append(
            f"Expected confidence {fixture.expected_confidence_band.value}, got {result.confidence_band.value}"
        )

    if fixture.min_score is not None and result.top_score < fixture.min_score:
        errors.append(f"Score {result.top_score} below minimum {fixture.min_score}")
    if fixture.max_score is not None and result.top_score > fixture.max_score:
        errors.append(f"Score {result.top_score} above maximum {fixture.max_score}")

    if fixture.expected_block_reason_pattern:
        if not result.block_reason or not re.search(fixture.expected_block_reason_pattern, result.block_reason):
            errors.append(
                f"Block reason {result.block_reason!r} doesn't match pattern "
                f"{fixture.expected_block_reason_pattern!r}"
            )

    if fixture.expected_template_slug and result.selected:
        if result.template_slug != fixture.expected_template_slug:
            errors.append(f"Expected template {fixture.expected_template_slug}, got {result.template_slug}")

    if errors:
        logger.debug(f"Fixture {fixture.id} failed: {'; '.join(errors)}")

    return FixtureRunResult(
        fixture=fixture,
        passed=not errors,
        actual_outcome=actual,
        actual_score=result.top_score,
        actual_confidence_band=result.confidence_band,
        actual_template_slug=result.template_slug,
        actual_block_reason=result.block_reason,
        errors=errors,
    )


def run_fixture_category(
    category: FixtureCategory,
    templates: Optional[Sequence[TemplateCandidate]] = None,
    config: Optional[SelectorConfig] = None,
) -> List[FixtureRunResult]:
    return [run_fixture(f, templates, config) for f in get_fixtures_by_category(category)]


def run_all_fixtures(
    fixtures: Optional[Sequence[SelectionFixture]] = None,
    templates: Optional[Sequence[TemplateCandidate]] = None,
    config: Optional[SelectorConfig] = None,
) -> FixtureSummary:
    """
    Run fixtures and summarize.

    Args:
        fixtures: Fixtures to run; all built-in fixtures when None
        templates: Templates to select from; the built-in ones when None
        config: Selector configuration

    Returns:
        FixtureSummary
    """
    selected = list(fixtures) if fixtures is not None else ALL_SELECTION_FIXTURES
    results = [run_fixture(f, templates, config) for f in selected]

    by_category: Dict[str, Dict[str, int]] = {}
    for result in results:
        counts = by_category.setdefault(result.fixture.category.value, {'passed': 0, 'failed': 0})
        counts['passed' if result.passed else 'failed'] += 1

    summary = FixtureSummary(results=results, by_category=by_category)
    logger.info(f"Fixtures: {summary.passed}/{summary.total} passed")
    return summary
