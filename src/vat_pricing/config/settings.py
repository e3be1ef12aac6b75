"""
Centralized settings for price computations.

Every rounded operation performed by a Price reads its rounding mode from a
Settings instance, either one passed explicitly or the process-wide default.
"""
import decimal
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

ROUNDING_MODES = (
    decimal.ROUND_HALF_UP,
    decimal.ROUND_HALF_DOWN,
    decimal.ROUND_HALF_EVEN,
    decimal.ROUND_UP,
    decimal.ROUND_DOWN,
    decimal.ROUND_CEILING,
    decimal.ROUND_FLOOR,
    decimal.ROUND_05UP,
)


def validate_rounding(mode: str) -> str:
    """Return the decimal rounding constant matching ``mode``."""
    name = str(mode).strip().upper()
    if not name.startswith('ROUND_'):
        name = f'ROUND_{name}'
    if name not in ROUNDING_MODES:
        raise ValueError(
            f"Unknown rounding mode '{mode}'. Expected one of: {', '.join(ROUNDING_MODES)}"
        )
    return name


@dataclass(frozen=True)
class Settings:
    """Pricing settings with sensible defaults."""

    # Tie-breaking policy for every inexact Money/Decimal operation
    rounding: str = decimal.ROUND_HALF_UP

    # Fractional digits kept when a VAT rate is derived from an amount
    vat_rate_scale: int = 2

    # Fractional digits of the intermediate rate / 100 division
    vat_division_scale: int = 4

    # Used by batch and API inputs that omit a currency
    default_currency: str = 'EUR'

    def __post_init__(self):
        object.__setattr__(self, 'rounding', validate_rounding(self.rounding))
        object.__setattr__(self, 'default_currency', self.default_currency.strip().upper())

    @classmethod
    def load(cls) -> 'Settings':
        """Load settings, applying environment overrides."""
        overrides = {}

        rounding = os.environ.get('VAT_PRICING_ROUNDING')
        if rounding:
            overrides['rounding'] = rounding

        currency = os.environ.get('VAT_PRICING_DEFAULT_CURRENCY')
        if currency:
            overrides['default_currency'] = currency

        return cls(**overrides)


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure(**changes) -> Settings:
    """
    Replace the global settings with a modified copy.

    Prices created without explicit settings pick the new values up on
    their next computation.
    """
    global _settings
    _settings = replace(get_settings(), **changes)
    logger.info("Pricing settings updated: %s", _settings)
    return _settings


def reset_settings() -> None:
    """Drop the global instance so the next access reloads it."""
    global _settings
    _settings = None
