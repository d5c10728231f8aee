"""
Templates

Template version data model and the read-only registry the selector
consumes.

Usage:
    from template_selector.templates import InMemoryTemplateRegistry, builtin_templates

    registry = InMemoryTemplateRegistry(builtin_templates())
    active = registry.list_active_templates()
"""

from .template import (
    TemplateStatus,
    SelectionConfig,
    RoiBounds,
    RoiRegion,
    RoiConfig,
    LayoutExpectations,
    FieldExpectation,
    TemplateCandidate,
    create_template,
)
from .registry import (
    TemplateRegistry,
    InMemoryTemplateRegistry,
    load_registry,
)
from .builtin_templates import (
    JOB_SHEET_TEMPLATE,
    SERVICE_REPORT_TEMPLATE,
    INSPECTION_CERTIFICATE_TEMPLATE,
    SALES_INVOICE_TEMPLATE,
    builtin_templates,
)

__all__ = [
    'TemplateStatus',
    'SelectionConfig',
    'RoiBounds',
    'RoiRegion',
    'RoiConfig',
    'LayoutExpectations',
    'FieldExpectation',
    'TemplateCandidate',
    'create_template',
    'TemplateRegistry',
    'InMemoryTemplateRegistry',
    'load_registry',
    'JOB_SHEET_TEMPLATE',
    'SERVICE_REPORT_TEMPLATE',
    'INSPECTION_CERTIFICATE_TEMPLATE',
    'SALES_INVOICE_TEMPLATE',
    'builtin_templates',
]
