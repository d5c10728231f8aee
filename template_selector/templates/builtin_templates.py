"""
Built-in Templates

Sample template versions for field-service paperwork, used by the
fixture suite and as a starting point for custom registries.
"""

from typing import List

from .template import (
    FieldExpectation,
    LayoutExpectations,
    RoiBounds,
    RoiConfig,
    RoiRegion,
    TemplateCandidate,
    create_template,
)


# =============================================================================
# JOB SHEET
# =============================================================================

JOB_SHEET_TEMPLATE = create_template(
    template_id='tpl-job-sheet',
    slug='job-sheet-standard',
    name='Standard Job Sheet',
    required_all=['job', 'sheet'],
    required_any=['repair', 'maintenance', 'service'],
    optional=['customer', 'signature', 'technician', 'reference', 'parts'],
    roi_config=RoiConfig(regions=(
        RoiRegion(
            name='header',
            page=1,
            bounds=RoiBounds(x=0.0, y=0.0, width=1.0, height=0.2),
            fields=('jobNumber',),
        ),
        RoiRegion(
            name='sign-off',
            page=1,
            bounds=RoiBounds(x=0.0, y=0.8, width=1.0, height=0.2),
            fields=('customerSignature',),
        ),
    )),
    layout_expectations=LayoutExpectations(min_pages=1, max_pages=2),
    expected_fields=(
        FieldExpectation('dateOfService', 'date'),
        FieldExpectation('jobNumber', 'pattern', r'JOB-\d{4,}'),
        FieldExpectation('customerSignature', 'required'),
    ),
    work_type='maintenance',
)


# =============================================================================
# SERVICE REPORT
# =============================================================================

SERVICE_REPORT_TEMPLATE = create_template(
    template_id='tpl-service-report',
    slug='service-report',
    name='Service Report',
    required_all=['service', 'report'],
    required_any=['repair', 'maintenance', 'inspection'],
    optional=['engineer', 'customer', 'signature', 'date', 'equipment'],
    expected_fields=(
        FieldExpectation('dateOfService', 'date'),
        FieldExpectation('workDescription', 'string'),
    ),
)


# =============================================================================
# INSPECTION CERTIFICATE
# =============================================================================

INSPECTION_CERTIFICATE_TEMPLATE = create_template(
    template_id='tpl-inspection-certificate',
    slug='inspection-certificate',
    name='Inspection Certificate',
    required_all=['inspection'],
    required_any=['certificate', 'examination', 'report'],
    optional=['equipment', 'asset', 'date', 'engineer'],
    expected_fields=(
        FieldExpectation('dateOfService', 'date'),
        FieldExpectation('serialNumber', 'string'),
    ),
    asset_type='lifting-equipment',
)


# =============================================================================
# SALES INVOICE
# =============================================================================

SALES_INVOICE_TEMPLATE = create_template(
    template_id='tpl-sales-invoice',
    slug='sales-invoice',
    name='Sales Invoice',
    required_all=['invoice'],
    required_any=['total', 'due', 'payment'],
    optional=['bill', 'vat', 'tax', 'amount'],
)


def builtin_templates() -> List[TemplateCandidate]:
    """All built-in templates, sorted by slug."""
    templates = [
        JOB_SHEET_TEMPLATE,
        SERVICE_REPORT_TEMPLATE,
        INSPECTION_CERTIFICATE_TEMPLATE,
        SALES_INVOICE_TEMPLATE,
    ]
    return sorted(templates, key=lambda t: t.template_slug)
