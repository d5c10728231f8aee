"""
Shared test templates and documents.

Run with: pytest tests/ -v
"""

import pytest

from template_selector.document import DocumentMetadata
from template_selector.templates.template import (
    FieldExpectation,
    LayoutExpectations,
    RoiBounds,
    RoiConfig,
    RoiRegion,
    create_template,
)


JOB_SHEET_TEXT = (
    "JOB SHEET\n"
    "Job Reference: JOB-123456\n"
    "Routine maintenance of cooling unit\n"
    "Customer Signature: ___"
)

JOB_APPLICATION_TEXT = (
    "JOB APPLICATION FORM\n"
    "Position: Sheet Metal Worker\n"
    "Applicant Name: ________\n"
    "Previous Employer: ________"
)

MULTI_PAGE_TEXTS = (
    "Job Sheet - Maintenance\nJob No: 42\nDate: 01/02/2026\nSerial: SN-12345-AB",
    "Customer Signature: ____",
)


def make_job_sheet(**kwargs):
    """Job sheet template: {job, sheet} all, {repair, maintenance} any."""
    kwargs.setdefault('optional', ['signature', 'customer'])
    return create_template(
        kwargs.pop('template_id', 'tpl-job-sheet'),
        kwargs.pop('slug', 'job-sheet'),
        required_all=['job', 'sheet'],
        required_any=['repair', 'maintenance'],
        **kwargs,
    )


def make_multi_signal_job_sheet(**kwargs):
    """Job sheet template with ROI, layout and field expectations."""
    bounds = RoiBounds(x=0.0, y=0.0, width=1.0, height=0.25)
    return create_template(
        kwargs.pop('template_id', 'tpl-job-sheet-ms'),
        kwargs.pop('slug', 'job-sheet-ms'),
        required_all=['job', 'sheet'],
        required_any=['maintenance'],
        roi_config=RoiConfig(regions=(
            RoiRegion('header', 1, bounds, ('jobNumber',)),
            RoiRegion('signature', 2, bounds, ('customerSignature',)),
        )),
        layout_expectations=LayoutExpectations(min_pages=1, max_pages=2),
        expected_fields=(
            FieldExpectation('dateOfService', 'date'),
            FieldExpectation('serialNumber', 'pattern', r'SN-\d{5}'),
        ),
        **kwargs,
    )


@pytest.fixture
def job_sheet_template():
    return make_job_sheet()


@pytest.fixture
def multi_signal_template():
    return make_multi_signal_job_sheet()


@pytest.fixture
def two_page_metadata():
    return DocumentMetadata(page_count=2)


@pytest.fixture
def tie_templates():
    """Two templates that score identically on 'Document repair' (MEDIUM, 60)."""
    optional = ['alpha', 'bravo', 'charlie', 'delta', 'echo']
    return [
        create_template('tpl-b', 'b-report', required_all=['document'], required_any=['repair'], optional=optional),
        create_template('tpl-a', 'a-report', required_all=['document'], required_any=['repair'], optional=optional),
    ]
