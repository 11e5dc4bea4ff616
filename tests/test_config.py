"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for calculator configs.
"""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

from ai_cost_compare.config.loader import (
    DEFAULT_PRICING_PATH,
    CalculatorConfig,
    DiscountConfig,
    load_calculator_config
)
from ai_cost_compare.core.token_counter import TokenUsage


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data: dict, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a full configuration loads correctly."""
        config_data = {
            "pricing_path": "/data/pricing.tsv",
            "debounce_seconds": 0.25,
            "annual": True,
            "discount": {"enabled": True, "percent": 30},
            "presets": {
                "heavy-input": {"input": 9000000, "output": 1000000}
            },
            "log_level": "DEBUG"
        }

        config = load_calculator_config(self._write_config(config_data))

        assert config.pricing_path == Path("/data/pricing.tsv")
        assert config.debounce_seconds == 0.25
        assert config.annual is True
        assert config.discount == DiscountConfig(enabled=True, percent=30.0)
        assert config.presets == {"heavy-input": TokenUsage(9000000, 1000000)}
        assert config.log_level == "debug"

    def test_none_path_gives_defaults(self):
        config = load_calculator_config(None)
        assert config == CalculatorConfig.default()
        assert config.pricing_path == DEFAULT_PRICING_PATH
        assert config.debounce_seconds == 0.65
        assert set(config.presets) == {"70/30", "50/50"}
        assert config.presets["70/30"] == TokenUsage(7000000, 3000000)

    def test_partial_config_keeps_defaults(self):
        config = load_calculator_config(self._write_config({"annual": True}))
        assert config.annual is True
        assert config.discount == DiscountConfig()
        assert config.log_level == "warning"

    def test_relative_pricing_path_resolved_against_config(self):
        config_path = self._write_config({"pricing_path": "prices/pricing.tsv"})
        config = load_calculator_config(config_path)
        assert config.pricing_path == Path(self.temp_dir).resolve() / "prices" / "pricing.tsv"

    def test_missing_file_raises_error(self):
        with pytest.raises(FileNotFoundError, match="Calculator config file not found"):
            load_calculator_config("nonexistent.yaml")

    def test_empty_config_raises_error(self):
        config_path = self._write_config({})
        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_calculator_config(config_path)

    def test_invalid_yaml_raises_error(self):
        config_path = os.path.join(self.temp_dir, "invalid.yaml")
        with open(config_path, 'w') as f:
            f.write("invalid: yaml: content: [")

        with pytest.raises(yaml.YAMLError):
            load_calculator_config(config_path)

    def test_unknown_top_level_key_raises_error(self):
        config_path = self._write_config({"anual": True})
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_calculator_config(config_path)

    def test_non_positive_debounce_raises_error(self):
        config_path = self._write_config({"debounce_seconds": 0})
        with pytest.raises(ValueError, match="debounce_seconds must be > 0"):
            load_calculator_config(config_path)

    def test_non_numeric_debounce_raises_error(self):
        config_path = self._write_config({"debounce_seconds": "fast"})
        with pytest.raises(ValueError, match="'debounce_seconds' must be a number"):
            load_calculator_config(config_path)

    def test_annual_must_be_bool(self):
        config_path = self._write_config({"annual": "yes please"})
        with pytest.raises(ValueError, match="'annual' must be true or false"):
            load_calculator_config(config_path)

    def test_invalid_log_level_raises_error(self):
        config_path = self._write_config({"log_level": "verbose"})
        with pytest.raises(ValueError, match="log_level must be one of"):
            load_calculator_config(config_path)


class TestDiscountConfig:
    """Test discount section validation."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _load(self, discount):
        config_path = os.path.join(self.temp_dir, "config.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump({"discount": discount}, f)
        return load_calculator_config(config_path)

    def test_percent_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 100"):
            self._load({"enabled": True, "percent": 120})

    def test_percent_must_be_number(self):
        with pytest.raises(ValueError, match="'percent' in discount must be a number"):
            self._load({"percent": "twenty"})

    def test_enabled_must_be_bool(self):
        with pytest.raises(ValueError, match="'enabled' in discount must be true or false"):
            self._load({"enabled": "on"})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown keys in discount"):
            self._load({"rate": 10})

    def test_not_a_dictionary(self):
        with pytest.raises(ValueError, match="'discount' must be a dictionary"):
            self._load(20)

    def test_percent_defaults(self):
        assert self._load({"enabled": True}).discount.percent == 20.0


class TestPresetConfig:
    """Test preset section validation."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _load(self, presets):
        config_path = os.path.join(self.temp_dir, "config.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump({"presets": presets}, f)
        return load_calculator_config(config_path)

    def test_presets_replace_defaults(self):
        config = self._load({"70/30": {"input": 70, "output": 30}})
        assert config.presets == {"70/30": TokenUsage(70, 30)}

    def test_missing_output(self):
        with pytest.raises(ValueError, match="Missing required 'output' in presets.big"):
            self._load({"big": {"input": 1}})

    def test_negative_tokens(self):
        with pytest.raises(ValueError, match="'input' in presets.big must be a non-negative integer"):
            self._load({"big": {"input": -1, "output": 1}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown keys in presets.big"):
            self._load({"big": {"input": 1, "output": 1, "total": 2}})

    def test_preset_must_be_dictionary(self):
        with pytest.raises(ValueError, match="Preset 'big' must be a dictionary"):
            self._load({"big": 5})
