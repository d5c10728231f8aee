"""
Versioned Signal Weights

A named, versioned weight set. Changing the defaults means bumping
WEIGHTS_VERSION so past traces stay reproducible from their stored version.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

from .base import SignalType


WEIGHTS_VERSION = '1.0.0'
WEIGHTS_EFFECTIVE_AT = '2025-01-01T00:00:00+00:00'


@dataclass(frozen=True)
class VersionedWeights:
    token: float = 0.40
    layout: float = 0.20
    roi: float = 0.25
    plausibility: float = 0.15
    version: str = WEIGHTS_VERSION
    effective_at: str = WEIGHTS_EFFECTIVE_AT

    def __post_init__(self):
        for signal_type in SignalType:
            value = getattr(self, signal_type.value)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Weight '{signal_type.value}' must be within [0, 1], got {value}")

    def weight_for(self, signal_type: SignalType) -> float:
        return getattr(self, signal_type.value)

    def with_overrides(self, overrides: Optional[Dict[str, float]]) -> 'VersionedWeights':
        """
        Apply per-call weight overrides.

        Args:
            overrides: Mapping of signal type name to weight

        Returns:
            New VersionedWeights whose version carries a '-custom' suffix,
            or self when there is nothing to override

        Raises:
            ValueError: On an unknown signal type or out-of-range weight
        """
        if not overrides:
            return self

        known = {t.value for t in SignalType}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown signal weight(s): {', '.join(unknown)}")

        version = self.version if self.version.endswith('-custom') else f"{self.version}-custom"
        return replace(self, version=version, **{k: float(v) for k, v in overrides.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'token': self.token,
            'layout': self.layout,
            'roi': self.roi,
            'plausibility': self.plausibility,
            'version': self.version,
            'effective_at': self.effective_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VersionedWeights':
        defaults = cls()
        return cls(
            token=float(data.get('token', defaults.token)),
            layout=float(data.get('layout', defaults.layout)),
            roi=float(data.get('roi', defaults.roi)),
            plausibility=float(data.get('plausibility', defaults.plausibility)),
            version=str(data.get('version', defaults.version)),
            effective_at=str(data.get('effective_at', defaults.effective_at)),
        )


DEFAULT_WEIGHTS = VersionedWeights()
