"""
Exceptions raised by the pricing engine.

All of them are raised synchronously while building or querying a Price.
"""


class PricingError(Exception):
    """Base class for pricing failures."""


class CurrencyMismatch(PricingError, ValueError):
    """Two Money operands carry different currencies."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Currency mismatch: expected {expected}, got {actual}")


class InvalidModifier(PricingError, ValueError):
    """A value cannot be turned into a price modifier."""


class InvalidSerializedPrice(PricingError, ValueError):
    """A serialized price record cannot be hydrated."""


class UnsupportedFactoryCall(PricingError, AttributeError):
    """A factory name resolves to neither a currency nor a Money constructor."""
