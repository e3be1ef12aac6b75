"""Engine subpackage - money, modifiers and price aggregation."""
from .errors import (
    CurrencyMismatch,
    InvalidModifier,
    InvalidSerializedPrice,
    PricingError,
    UnsupportedFactoryCall,
)
from .models import ModificationRecord
from .modifiers import (
    Modifier,
    ModifierType,
    OverridePriceModifier,
    PercentageModifier,
    PriceAmendable,
    PriceFloorModifier,
    make_modifier,
    modifier_from_action,
)
from .money import Money
from .price import Price

__all__ = [
    'Price', 'Money', 'ModificationRecord',
    'Modifier', 'ModifierType', 'PriceAmendable',
    'PercentageModifier', 'OverridePriceModifier', 'PriceFloorModifier',
    'make_modifier', 'modifier_from_action',
    'PricingError', 'CurrencyMismatch', 'InvalidModifier',
    'InvalidSerializedPrice', 'UnsupportedFactoryCall',
]
