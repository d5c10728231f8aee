"""
Selector Configuration

Mode, decision policy and signal weights, loaded from YAML.

Example config.yaml:

    mode: multi_signal
    policy:
      high_threshold: 80
      medium_threshold: 50
      ambiguity_gap: 10
      selection_budget_ms: 5000
    weights:
      token: 0.40
      layout: 0.20
      roi: 0.25
      plausibility: 0.15
      version: "1.0.0"

All validation happens here, at load time, so selection itself never
fails on a bad value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Union

import yaml
from loguru import logger

from .decision.decision_engine import SelectionPolicy
from .signals.weights import VersionedWeights


class SelectionMode(Enum):
    """How candidates are scored."""

    TOKEN = "token"
    MULTI_SIGNAL = "multi_signal"

    @classmethod
    def parse(cls, value: Any) -> 'SelectionMode':
        if isinstance(value, SelectionMode):
            return value
        try:
            return cls(str(value).lower().replace('-', '_'))
        except ValueError:
            raise ValueError(
                f"Unknown selection mode '{value}', expected one of: "
                f"{', '.join(m.value for m in cls)}"
            ) from None


@dataclass(frozen=True)
class SelectorConfig:
    """Everything a selection call needs besides the document and templates."""
    mode: SelectionMode = SelectionMode.TOKEN
    policy: SelectionPolicy = field(default_factory=SelectionPolicy)
    weights: VersionedWeights = field(default_factory=VersionedWeights)

    def with_mode(self, mode: Union[str, SelectionMode]) -> 'SelectorConfig':
        return SelectorConfig(mode=SelectionMode.parse(mode), policy=self.policy, weights=self.weights)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode.value,
            'policy': self.policy.to_dict(),
            'weights': self.weights.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SelectorConfig':
        """
        Build a config from a plain mapping.

        Raises:
            ValueError: On unknown keys, unknown mode or out-of-range values
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

        unknown = sorted(set(data) - {'mode', 'policy', 'weights'})
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")

        try:
            return cls(
                mode=SelectionMode.parse(data.get('mode', SelectionMode.TOKEN.value)),
                policy=SelectionPolicy.from_dict(data.get('policy') or {}),
                weights=VersionedWeights.from_dict(data.get('weights') or {}),
            )
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Invalid configuration: {e}") from e


DEFAULT_CONFIG = SelectorConfig()


def load_config(config_path: Optional[Path] = None) -> SelectorConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file; None returns the defaults

    Returns:
        SelectorConfig

    Raises:
        ValueError: If the file content is invalid
    """
    if config_path is None:
        return DEFAULT_CONFIG

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{config_path}: invalid YAML ({e})") from e

    config = SelectorConfig.from_dict(data)
    logger.debug(f"Configuration loaded: mode={config.mode.value}, weights={config.weights.version}")
    return config
