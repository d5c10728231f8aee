"""
Tests for selector configuration loading.
"""

import pytest

from template_selector.config import (
    DEFAULT_CONFIG,
    SelectionMode,
    SelectorConfig,
    load_config,
)


class TestSelectionMode:
    """Tests for mode parsing."""

    def test_parse_values(self):
        assert SelectionMode.parse('token') == SelectionMode.TOKEN
        assert SelectionMode.parse('Multi-Signal') == SelectionMode.MULTI_SIGNAL
        assert SelectionMode.parse(SelectionMode.TOKEN) is SelectionMode.TOKEN

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match='Unknown selection mode'):
            SelectionMode.parse('fuzzy')


class TestSelectorConfig:
    """Tests for configuration objects."""

    def test_defaults(self):
        assert DEFAULT_CONFIG.mode == SelectionMode.TOKEN
        assert DEFAULT_CONFIG.policy.ambiguity_gap == 10
        assert DEFAULT_CONFIG.weights.token == 0.40

    def test_with_mode(self):
        config = DEFAULT_CONFIG.with_mode('multi_signal')
        assert config.mode == SelectionMode.MULTI_SIGNAL
        assert config.policy == DEFAULT_CONFIG.policy

    def test_round_trip(self):
        config = SelectorConfig.from_dict({'mode': 'multi_signal', 'policy': {'ambiguity_gap': 15}})
        assert SelectorConfig.from_dict(config.to_dict()) == config

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match='Unknown configuration key'):
            SelectorConfig.from_dict({'threshold': 80})

    def test_invalid_policy_rejected(self):
        with pytest.raises(ValueError):
            SelectorConfig.from_dict({'policy': {'high_threshold': 30}})

    def test_invalid_weight_rejected(self):
        with pytest.raises(ValueError):
            SelectorConfig.from_dict({'weights': {'roi': 2}})

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            SelectorConfig.from_dict(['token'])


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_no_path_returns_defaults(self):
        assert load_config() is DEFAULT_CONFIG

    def test_load_yaml(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text(
            "mode: multi_signal\n"
            "policy:\n"
            "  ambiguity_gap: 5\n"
            "weights:\n"
            "  token: 0.5\n"
            "  version: '2.0.0'\n",
            encoding='utf-8',
        )
        config = load_config(path)
        assert config.mode == SelectionMode.MULTI_SIGNAL
        assert config.policy.ambiguity_gap == 5
        assert config.weights.token == 0.5
        assert config.weights.version == '2.0.0'

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("", encoding='utf-8')
        assert load_config(path) == DEFAULT_CONFIG

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("mode: [token", encoding='utf-8')
        with pytest.raises(ValueError, match='invalid YAML'):
            load_config(path)
