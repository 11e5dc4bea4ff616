"""
Configuration management and loading.

Handles calculator settings: pricing source, debounce delay, display
defaults and token presets.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ai_cost_compare.core.debounce import DEFAULT_DELAY_SECONDS
from ai_cost_compare.core.session import DEFAULT_PRESETS
from ai_cost_compare.core.token_counter import TokenUsage
from ai_cost_compare.logging import LOG_LEVELS

DEFAULT_PRICING_PATH = Path(__file__).resolve().parent.parent / "data" / "pricing.tsv"


@dataclass(frozen=True)
class DiscountConfig:
    """Illustrative discount overlay defaults."""
    enabled: bool = False
    percent: float = 20.0

    def __post_init__(self):
        """Validate percent is within [0, 100]."""
        if not 0 <= self.percent <= 100:
            raise ValueError("discount percent must be between 0 and 100")


@dataclass(frozen=True)
class CalculatorConfig:
    """Complete calculator configuration."""
    pricing_path: Path = DEFAULT_PRICING_PATH
    debounce_seconds: float = DEFAULT_DELAY_SECONDS
    annual: bool = False
    discount: DiscountConfig = field(default_factory=DiscountConfig)
    presets: Dict[str, TokenUsage] = field(default_factory=lambda: dict(DEFAULT_PRESETS))
    log_level: str = "warning"

    def __post_init__(self):
        """Validate timing and log level."""
        if self.debounce_seconds <= 0:
            raise ValueError("debounce_seconds must be > 0")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {list(LOG_LEVELS)}")

    @classmethod
    def default(cls) -> "CalculatorConfig":
        return cls()


def load_calculator_config(path: Optional[str]) -> CalculatorConfig:
    """Load and validate calculator configuration from a YAML file.

    Unknown keys are rejected so that a typo never silently falls back
    to a default.

    Args:
        path: Path to YAML configuration file, or None for defaults

    Returns:
        Validated CalculatorConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return CalculatorConfig.default()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Calculator config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'pricing_path', 'debounce_seconds', 'annual', 'discount', 'presets', 'log_level'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    kwargs: Dict[str, Any] = {}

    if 'pricing_path' in raw_config:
        pricing_path = Path(str(raw_config['pricing_path']))
        # Relative paths are resolved against the config file location
        if not pricing_path.is_absolute():
            pricing_path = config_path.resolve().parent / pricing_path
        kwargs['pricing_path'] = pricing_path

    if 'debounce_seconds' in raw_config:
        delay = raw_config['debounce_seconds']
        if isinstance(delay, bool) or not isinstance(delay, (int, float)):
            raise ValueError("'debounce_seconds' must be a number")
        kwargs['debounce_seconds'] = float(delay)

    if 'annual' in raw_config:
        if not isinstance(raw_config['annual'], bool):
            raise ValueError("'annual' must be true or false")
        kwargs['annual'] = raw_config['annual']

    if 'discount' in raw_config:
        kwargs['discount'] = _parse_discount_config(raw_config['discount'])

    if 'presets' in raw_config:
        kwargs['presets'] = _parse_presets(raw_config['presets'])

    if 'log_level' in raw_config:
        level = raw_config['log_level']
        if not isinstance(level, str):
            raise ValueError("'log_level' must be a string")
        kwargs['log_level'] = level.lower()

    return CalculatorConfig(**kwargs)


def _parse_discount_config(data: Any) -> DiscountConfig:
    """Parse and validate the discount section.

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'discount' must be a dictionary")

    allowed_keys = {'enabled', 'percent'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in discount: {unknown_keys}")

    enabled = data.get('enabled', False)
    if not isinstance(enabled, bool):
        raise ValueError("'enabled' in discount must be true or false")

    percent = data.get('percent', DiscountConfig.percent)
    if isinstance(percent, bool) or not isinstance(percent, (int, float)):
        raise ValueError("'percent' in discount must be a number")

    return DiscountConfig(enabled=enabled, percent=float(percent))


def _parse_presets(data: Any) -> Dict[str, TokenUsage]:
    """Parse and validate named token presets.

    Args:
        data: Mapping of preset name to {input, output}

    Returns:
        Presets keyed by name

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'presets' must be a dictionary")

    presets = {}
    for name, preset in data.items():
        path = f"presets.{name}"
        if not isinstance(preset, dict):
            raise ValueError(f"Preset '{name}' must be a dictionary")

        allowed_keys = {'input', 'output'}
        unknown_keys = set(preset.keys()) - allowed_keys
        if unknown_keys:
            raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

        for key in ('input', 'output'):
            if key not in preset:
                raise ValueError(f"Missing required '{key}' in {path}")
            value = preset[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{key}' in {path} must be a non-negative integer")

        presets[str(name)] = TokenUsage(input_tokens=preset['input'], output_tokens=preset['output'])

    return presets
