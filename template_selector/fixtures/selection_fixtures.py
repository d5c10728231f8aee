"""
Selection Fixtures

Documents with a documented expected outcome against the built-in
templates, in four categories:

- positive: should match with HIGH or MEDIUM confidence
- near-miss: share incidental keywords but must never reach HIGH
- ambiguity: match several templates equally and must be blocked
- edge-case: empty, minimal, noisy, very long or foreign-language input

Expected outcomes are calibrated for token mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from textwrap import dedent
from typing import Optional, List, Tuple

from ..document import DocumentMetadata
from ..signals.base import ConfidenceBand


class FixtureCategory(Enum):
    POSITIVE = "positive"
    NEAR_MISS = "near-miss"
    AMBIGUITY = "ambiguity"
    EDGE_CASE = "edge-case"


class ExpectedOutcome(Enum):
    """Observable outcome of a selection."""

    HIGH_CONFIDENCE_MATCH = "HIGH_CONFIDENCE_MATCH"
    MEDIUM_CONFIDENCE_MATCH = "MEDIUM_CONFIDENCE_MATCH"
    LOW_CONFIDENCE_BLOCK = "LOW_CONFIDENCE_BLOCK"
    AMBIGUITY_BLOCK = "AMBIGUITY_BLOCK"
    NO_MATCH = "NO_MATCH"


@dataclass(frozen=True)
class SelectionFixture:
    """One document with its expected selection outcome."""
    id: str
    description: str
    category: FixtureCategory
    document_text: str
    expected_outcome: ExpectedOutcome
    expected_confidence_band: Optional[ConfidenceBand] = None
    expected_template_slug: Optional[str] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    expected_block_reason_pattern: Optional[str] = None
    page_texts: Optional[Tuple[str, ...]] = None
    metadata: Optional[DocumentMetadata] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)


def _doc(text: str) -> str:
    return dedent(text).strip('\n')


# =============================================================================
# POSITIVE
# =============================================================================

POSITIVE_FIXTURES: List[SelectionFixture] = [
    SelectionFixture(
        id='POS-001',
        description='Standard job sheet with all expected fields',
        category=FixtureCategory.POSITIVE,
        document_text=_doc("""
            JOB SHEET
            Reference: JOB-123456
            Date of Service: 15/03/2026

            Customer: ACME Corporation
            Serial Number: SN-12345-AB

            Technician: John Smith
            Time In: 09:00
            Time Out: 12:30

            Work Description:
            Performed routine maintenance on cooling unit.
            Replaced filters and checked refrigerant levels.

            Parts Used:
            - Filter Unit (x2)
            - Refrigerant R410A

            Customer Signature: _________
        """),
        expected_outcome=ExpectedOutcome.HIGH_CONFIDENCE_MATCH,
        expected_confidence_band=ConfidenceBand.HIGH,
        expected_template_slug='job-sheet-standard',
        min_score=80,
        tags=('happy-path', 'standard'),
    ),
    SelectionFixture(
        id='POS-002',
        description='Terse job sheet heading with a clear lead over other templates',
        category=FixtureCategory.POSITIVE,
        document_text='Job sheet - service visit',
        expected_outcome=ExpectedOutcome.MEDIUM_CONFIDENCE_MATCH,
        expected_confidence_band=ConfidenceBand.MEDIUM,
        expected_template_slug='job-sheet-standard',
        min_score=50,
        max_score=79,
        tags=('medium', 'clear-gap'),
    ),
    SelectionFixture(
        id='POS-003',
        description='Lifting equipment inspection certificate',
        category=FixtureCategory.POSITIVE,
        document_text=_doc("""
            THOROUGH EXAMINATION - INSPECTION CERTIFICATE
            Equipment: Mobile Crane
            Asset ID: CR-001
            Date: 01/04/2026
            Engineer: Jane Doe
        """),
        expected_outcome=ExpectedOutcome.HIGH_CONFIDENCE_MATCH,
        expected_confidence_band=ConfidenceBand.HIGH,
        expected_template_slug='inspection-certificate',
        min_score=80,
        tags=('happy-path', 'inspection'),
    ),
    SelectionFixture(
        id='POS-004',
        description='Sales invoice that mentions equipment and service fees',
        category=FixtureCategory.POSITIVE,
        document_text=_doc("""
            SALES INVOICE
            Invoice Number: INV-2026-0001
            Date: 15/03/2026

            Bill To: XYZ Company

            Items:
            - Equipment Serial: SN-12345-AB
            - Service Fee: $500.00

            Payment Due: 30 days net
        """),
        expected_outcome=ExpectedOutcome.HIGH_CONFIDENCE_MATCH,
        expected_confidence_band=ConfidenceBand.HIGH,
        expected_template_slug='sales-invoice',
        min_score=80,
        tags=('happy-path', 'invoice'),
    ),
]


# =============================================================================
# NEAR-MISS
# =============================================================================

NEAR_MISS_FIXTURES: List[SelectionFixture] = [
    SelectionFixture(
        id='NEAR-001',
        description='Job/sheet keywords in the wrong context (job application)',
        category=FixtureCategory.NEAR_MISS,
        document_text=_doc("""
            JOB APPLICATION FORM

            Position Applied For: Sheet Metal Worker

            Applicant Name: Michael Brown
            Date of Application: 10/02/2026

            Please describe your work experience:
            I have worked as a sheet metal fabricator for 10 years.
        """),
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=49,
        expected_block_reason_pattern=r'LOW_CONFIDENCE',
        tags=('near-miss', 'wrong-context'),
    ),
    SelectionFixture(
        id='NEAR-002',
        description='Draft job sheet missing every work-type keyword',
        category=FixtureCategory.NEAR_MISS,
        document_text=_doc("""
            JOB SHEET (DRAFT)

            Notes: Equipment inspection required
            Location: Building B
        """),
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=49,
        expected_block_reason_pattern=r'LOW_CONFIDENCE',
        tags=('near-miss', 'incomplete'),
    ),
    SelectionFixture(
        id='NEAR-003',
        description='Service keywords from a different industry (restaurant feedback)',
        category=FixtureCategory.NEAR_MISS,
        document_text=_doc("""
            CUSTOMER SERVICE FEEDBACK

            Restaurant: The Golden Fork
            Date of Visit: 20/03/2026

            Service Rating: Excellent
            Food Quality: Very Good

            Customer Name: Sarah Wilson
            Signature: _________
        """),
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=49,
        expected_block_reason_pattern=r'LOW_CONFIDENCE',
        tags=('near-miss', 'wrong-industry'),
    ),
    SelectionFixture(
        id='NEAR-004',
        description='Generic service document with no template fingerprint',
        category=FixtureCategory.NEAR_MISS,
        document_text=_doc("""
            SERVICE DOCUMENT
            Date: 15/03/2026

            Reference Number: REF-12345
            Customer: General Corp

            Description of Work
        """),
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=49,
        tags=('near-miss', 'generic'),
    ),
]


# =============================================================================
# AMBIGUITY
# =============================================================================

AMBIGUITY_FIXTURES: List[SelectionFixture] = [
    SelectionFixture(
        id='AMB-001',
        description='Combined job sheet and service report heading',
        category=FixtureCategory.AMBIGUITY,
        document_text='JOB SHEET / SERVICE REPORT - Inspection',
        expected_outcome=ExpectedOutcome.AMBIGUITY_BLOCK,
        expected_confidence_band=ConfidenceBand.MEDIUM,
        expected_block_reason_pattern=r'CONFLICT|ambiguous gap',
        tags=('ambiguity', 'mixed-keywords'),
    ),
]


# =============================================================================
# EDGE CASES
# =============================================================================

EDGE_CASE_FIXTURES: List[SelectionFixture] = [
    SelectionFixture(
        id='EDGE-001',
        description='Empty document',
        category=FixtureCategory.EDGE_CASE,
        document_text='',
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=0,
        tags=('edge-case', 'empty'),
    ),
    SelectionFixture(
        id='EDGE-002',
        description='Single word document',
        category=FixtureCategory.EDGE_CASE,
        document_text='Job',
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=30,
        tags=('edge-case', 'minimal'),
    ),
    SelectionFixture(
        id='EDGE-003',
        description='Document with special characters only',
        category=FixtureCategory.EDGE_CASE,
        document_text='!@#$%^&*()_+-=[]{}|;:,.<>?',
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        max_score=0,
        tags=('edge-case', 'special-chars'),
    ),
    SelectionFixture(
        id='EDGE-004',
        description='Very long document with repeated keywords',
        category=FixtureCategory.EDGE_CASE,
        document_text=' '.join(['job sheet maintenance service'] * 100),
        expected_outcome=ExpectedOutcome.HIGH_CONFIDENCE_MATCH,
        expected_template_slug='job-sheet-standard',
        min_score=70,
        tags=('edge-case', 'long-document'),
    ),
    SelectionFixture(
        id='EDGE-005',
        description='Job sheet in another language',
        category=FixtureCategory.EDGE_CASE,
        document_text=_doc("""
            FICHE DE TRAVAIL
            Date: 15/03/2026
            Technicien: Pierre Dupont
            Description: Maintenance préventive
        """),
        expected_outcome=ExpectedOutcome.LOW_CONFIDENCE_BLOCK,
        expected_confidence_band=ConfidenceBand.LOW,
        tags=('edge-case', 'language'),
    ),
]


ALL_SELECTION_FIXTURES: List[SelectionFixture] = [
    *POSITIVE_FIXTURES,
    *NEAR_MISS_FIXTURES,
    *AMBIGUITY_FIXTURES,
    *EDGE_CASE_FIXTURES,
]


def get_fixtures_by_category(category: FixtureCategory) -> List[SelectionFixture]:
    return [f for f in ALL_SELECTION_FIXTURES if f.category == category]


def get_fixtures_by_tag(tag: str) -> List[SelectionFixture]:
    return [f for f in ALL_SELECTION_FIXTURES if tag in f.tags]


def get_fixture_by_id(fixture_id: str) -> Optional[SelectionFixture]:
    for fixture in ALL_SELECTION_FIXTURES:
        if fixture.id == fixture_id:
            return fixture
    return None
