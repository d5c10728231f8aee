"""
Template Definition

Defines the published, immutable configuration of one template version as
the selection engine sees it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

from ..document import FormType


class TemplateStatus(Enum):
    """Lifecycle status of a template version."""

    DRAFT = "draft"
    ACTIVE = "active"
    DEPRECATED = "deprecated"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class SelectionConfig:
    """
    Token fingerprint of a template version.

    All tokens are compared lower-cased against single document tokens.
    """

    required_tokens_all: Tuple[str, ...] = ()
    required_tokens_any: Tuple[str, ...] = ()
    optional_tokens: Tuple[str, ...] = ()
    form_code_regex: Optional[str] = None
    token_weights: Optional[Dict[str, float]] = None

    def weight_for(self, token: str, default: float) -> float:
        """Configured weight for a token, or the default for its group."""
        if self.token_weights and token in self.token_weights:
            return self.token_weights[token]
        return default

    def to_dict(self) -> Dict[str, Any]:
        return {
            'required_tokens_all': list(self.required_tokens_all),
            'required_tokens_any': list(self.required_tokens_any),
            'optional_tokens': list(self.optional_tokens),
            'form_code_regex': self.form_code_regex,
            'token_weights': dict(self.token_weights) if self.token_weights else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectionConfig':
        return cls(
            required_tokens_all=tuple(data.get('required_tokens_all', ())),
            required_tokens_any=tuple(data.get('required_tokens_any', ())),
            optional_tokens=tuple(data.get('optional_tokens', ())),
            form_code_regex=data.get('form_code_regex'),
            token_weights=dict(data['token_weights']) if data.get('token_weights') else None,
        )


@dataclass(frozen=True)
class RoiBounds:
    """Normalized rectangle, every component in [0, 1]."""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        for name in ('x', 'y', 'width', 'height'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"ROI bound '{name}' must be within [0, 1], got {value}")


@dataclass(frozen=True)
class RoiRegion:
    """A named region on a page (1-indexed) expected to hold some fields."""
    name: str
    page: int
    bounds: RoiBounds
    fields: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'page': self.page,
            'bounds': {
                'x': self.bounds.x,
                'y': self.bounds.y,
                'width': self.bounds.width,
                'height': self.bounds.height,
            },
            'fields': list(self.fields),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoiRegion':
        return cls(
            name=data['name'],
            page=int(data.get('page', 1)),
            bounds=RoiBounds(**data.get('bounds', {'x': 0.0, 'y': 0.0, 'width': 1.0, 'height': 1.0})),
            fields=tuple(data.get('fields') or ()),
        )


@dataclass(frozen=True)
class RoiConfig:
    regions: Tuple[RoiRegion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {'regions': [r.to_dict() for r in self.regions]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoiConfig':
        return cls(regions=tuple(RoiRegion.from_dict(r) for r in data.get('regions', [])))


@dataclass(frozen=True)
class LayoutExpectations:
    """Expected physical layout of documents filled from this template."""
    min_pages: Optional[int] = None
    max_pages: Optional[int] = None
    expected_sections: Optional[Tuple[str, ...]] = None
    form_type: Optional[FormType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_pages': self.min_pages,
            'max_pages': self.max_pages,
            'expected_sections': list(self.expected_sections) if self.expected_sections is not None else None,
            'form_type': self.form_type.value if self.form_type else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LayoutExpectations':
        sections = data.get('expected_sections')
        return cls(
            min_pages=data.get('min_pages'),
            max_pages=data.get('max_pages'),
            expected_sections=tuple(sections) if sections is not None else None,
            form_type=FormType.parse(data.get('form_type')),
        )


@dataclass(frozen=True)
class FieldExpectation:
    """
    A critical field the template declares, used for plausibility.

    field_type is one of 'date', 'pattern', 'regex', 'string', 'required';
    other types never count as plausible.
    """
    field: str
    field_type: str
    pattern: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'field': self.field, 'type': self.field_type, 'pattern': self.pattern}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldExpectation':
        return cls(
            field=data['field'],
            field_type=data.get('type', 'string'),
            pattern=data.get('pattern'),
        )


@dataclass(frozen=True)
class TemplateCandidate:
    """
    One template version as supplied by the template registry.

    Identity:
        template_id: Stable template identifier
        version_id: Identifier of the published version
        template_slug: Human-readable unique slug, also the ranking tie-breaker
    """

    # Identity
    template_id: str
    version_id: str
    template_slug: str
    name: str = ''

    # Selection inputs
    selection_config: SelectionConfig = field(default_factory=SelectionConfig)
    roi_config: Optional[RoiConfig] = None
    layout_expectations: Optional[LayoutExpectations] = None
    expected_fields: Tuple[FieldExpectation, ...] = ()

    # Business context for metadata boosting
    client: Optional[str] = None
    asset_type: Optional[str] = None
    work_type: Optional[str] = None

    status: TemplateStatus = TemplateStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == TemplateStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'template_id': self.template_id,
            'version_id': self.version_id,
            'template_slug': self.template_slug,
            'name': self.name,
            'selection': self.selection_config.to_dict(),
            'roi': self.roi_config.to_dict() if self.roi_config else None,
            'layout': self.layout_expectations.to_dict() if self.layout_expectations else None,
            'expected_fields': [f.to_dict() for f in self.expected_fields],
            'client': self.client,
            'asset_type': self.asset_type,
            'work_type': self.work_type,
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TemplateCandidate':
        """Create from dictionary."""
        roi_data = data.get('roi')
        layout_data = data.get('layout')
        slug = data.get('template_slug') or data.get('slug')
        if not slug:
            raise ValueError(f"Template '{data.get('template_id')}' has no slug")

        return cls(
            template_id=str(data['template_id']),
            version_id=str(data.get('version_id') or f"{data['template_id']}@1.0.0"),
            template_slug=slug,
            name=data.get('name', slug),
            selection_config=SelectionConfig.from_dict(data.get('selection', {})),
            roi_config=RoiConfig.from_dict(roi_data) if roi_data else None,
            layout_expectations=LayoutExpectations.from_dict(layout_data) if layout_data else None,
            expected_fields=tuple(FieldExpectation.from_dict(f) for f in data.get('expected_fields', [])),
            client=data.get('client'),
            asset_type=data.get('asset_type'),
            work_type=data.get('work_type'),
            status=TemplateStatus(data.get('status', 'active')),
        )


def create_template(
    template_id: str,
    slug: str,
    required_all: Optional[List[str]] = None,
    required_any: Optional[List[str]] = None,
    optional: Optional[List[str]] = None,
    form_code_regex: Optional[str] = None,
    version: str = '1.0.0',
    **kwargs,
) -> TemplateCandidate:
    """
    Convenience function to create a template candidate.

    Args:
        template_id: Template identifier
        slug: Template slug
        required_all: Tokens that must all be present
        required_any: Tokens of which at least one must be present
        optional: Tokens that boost the score
        form_code_regex: Optional form code pattern
        version: Version label, used to build the version id
        **kwargs: Additional TemplateCandidate fields

    Returns:
        TemplateCandidate
    """
    selection = SelectionConfig(
        required_tokens_all=tuple(required_all or ()),
        required_tokens_any=tuple(required_any or ()),
        optional_tokens=tuple(optional or ()),
        form_code_regex=form_code_regex,
        token_weights=kwargs.pop('token_weights', None),
    )
    kwargs.setdefault('name', slug)
    return TemplateCandidate(
        template_id=template_id,
        version_id=kwargs.pop('version_id', f"{template_id}@{version}"),
        template_slug=slug,
        selection_config=selection,
        **kwargs,
    )
