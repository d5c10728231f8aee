"""
Field Patterns

Surface forms under which a field identifier is likely to appear in document
text. Shared by the ROI and plausibility signals.

For ``customerSignature`` the generated forms are the identifier itself, the
space-split words (``customer signature``) and the concatenated words
(``customersignature``), followed by the domain synonyms from FIELD_SYNONYMS.
Fields without synonyms fall back to the generated forms only.
"""

from __future__ import annotations

import re
from typing import Dict, List, Tuple


# Domain synonyms for the field identifiers used by job-sheet style templates
FIELD_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    'customerSignature': ('signature', 'sign here', 'customer sign', 'authorized by'),
    'dateOfService': ('date', 'service date', 'date of service'),
    'serialNumber': ('serial', 'serial no', 's/n', 'sn'),
    'technicianName': ('technician', 'engineer', 'tech name'),
    'workDescription': ('work performed', 'description', 'work done'),
    'partsUsed': ('parts', 'materials', 'components'),
    'timeIn': ('time in', 'start time', 'arrival'),
    'timeOut': ('time out', 'end time', 'departure'),
    'customerName': ('customer', 'client', 'company'),
    'jobNumber': ('job no', 'job number', 'reference'),
}

_CAMEL_BOUNDARY = re.compile(r'([A-Z])')


def split_field_words(field_name: str) -> List[str]:
    """
    Split a camelCase or snake_case identifier into words.

    >>> split_field_words('customerSignature')
    ['customer', 'Signature']
    >>> split_field_words('serial_number')
    ['serial', 'number']
    """
    spaced = _CAMEL_BOUNDARY.sub(r' \1', field_name.replace('_', ' ').replace('-', ' '))
    return spaced.split()


def get_field_patterns(field_name: str) -> List[str]:
    """
    Get the surface forms to search for a field.

    Args:
        field_name: Field identifier (e.g. 'customerSignature')

    Returns:
        De-duplicated patterns, identifier first, synonyms last
    """
    words = split_field_words(field_name)
    patterns = [field_name, ' '.join(words), ''.join(words)]
    patterns.extend(FIELD_SYNONYMS.get(field_name, ()))

    seen = set()
    unique = []
    for pattern in patterns:
        key = pattern.lower()
        if key and key not in seen:
            seen.add(key)
            unique.append(pattern)
    return unique


def text_mentions_field(text: str, field_name: str) -> bool:
    """Check whether any surface form of a field occurs in text (case-insensitive)."""
    text_lower = text.lower()
    return any(p.lower() in text_lower for p in get_field_patterns(field_name))
