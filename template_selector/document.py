"""
Document Context

Caller-supplied description of one document to select a template for.
Nothing here is mutated by the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Dict, Any


class FormType(Enum):
    """How the document was filled in."""

    HANDWRITTEN = "handwritten"
    PRINTED = "printed"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: Any) -> Optional['FormType']:
        if value is None or isinstance(value, FormType):
            return value
        return cls(str(value).lower())


@dataclass(frozen=True)
class PageDimensions:
    width: float
    height: float


@dataclass(frozen=True)
class DocumentMetadata:
    """
    Layout facts about a document, used by the layout signal.
    """
    page_count: int
    page_dimensions: Optional[PageDimensions] = None
    detected_sections: Optional[Tuple[str, ...]] = None
    form_type: Optional[FormType] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentMetadata':
        dims = data.get('page_dimensions')
        sections = data.get('detected_sections')
        return cls(
            page_count=int(data.get('page_count', 1)),
            page_dimensions=PageDimensions(**dims) if dims else None,
            detected_sections=tuple(sections) if sections is not None else None,
            form_type=FormType.parse(data.get('form_type')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page_count': self.page_count,
            'page_dimensions': (
                {'width': self.page_dimensions.width, 'height': self.page_dimensions.height}
                if self.page_dimensions else None
            ),
            'detected_sections': list(self.detected_sections) if self.detected_sections is not None else None,
            'form_type': self.form_type.value if self.form_type else None,
        }


@dataclass(frozen=True)
class MatchingMetadata:
    """Business context used to boost candidates (client, asset type, work type)."""
    client: Optional[str] = None
    asset_type: Optional[str] = None
    work_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.client or self.asset_type or self.work_type)


@dataclass(frozen=True)
class DocumentContext:
    """
    Input to one selection call.

    When page_texts is not given, the whole document text is treated as page 1.
    """
    document_text: str
    page_texts: Optional[Tuple[str, ...]] = None
    metadata: Optional[DocumentMetadata] = None
    explicit_template_id: Optional[str] = None
    matching_metadata: Optional[MatchingMetadata] = None
    document_id: Optional[str] = None

    @property
    def pages(self) -> Tuple[str, ...]:
        if self.page_texts is not None:
            return tuple(self.page_texts)
        return (self.document_text,)
