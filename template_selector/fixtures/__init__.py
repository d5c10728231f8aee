"""
Selection Fixtures

Documents with known expected outcomes and a runner that checks them.

Usage:
    from template_selector.fixtures import run_all_fixtures

    summary = run_all_fixtures()
    assert summary.all_passed
"""

from .selection_fixtures import (
    FixtureCategory,
    ExpectedOutcome,
    SelectionFixture,
    POSITIVE_FIXTURES,
    NEAR_MISS_FIXTURES,
    AMBIGUITY_FIXTURES,
    EDGE_CASE_FIXTURES,
    ALL_SELECTION_FIXTURES,
    get_fixtures_by_category,
    get_fixtures_by_tag,
    get_fixture_by_id,
)
from .fixture_runner import (
    FixtureRunResult,
    FixtureSummary,
    classify_outcome,
    run_fixture,
    run_fixture_category,
    run_all_fixtures,
)

__all__ = [
    'FixtureCategory',
    'ExpectedOutcome',
    'SelectionFixture',
    'POSITIVE_FIXTURES',
    'NEAR_MISS_FIXTURES',
    'AMBIGUITY_FIXTURES',
    'EDGE_CASE_FIXTURES',
    'ALL_SELECTION_FIXTURES',
    'get_fixtures_by_category',
    'get_fixtures_by_tag',
    'get_fixture_by_id',
    'FixtureRunResult',
    'FixtureSummary',
    'classify_outcome',
    'run_fixture',
    'run_fixture_category',
    'run_all_fixtures',
]
