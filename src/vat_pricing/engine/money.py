"""
Money value object

Monetary amounts held as Decimal at the currency's minor-unit scale.
Every operation takes an explicit rounding mode and returns a new value.
"""
import decimal
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .errors import CurrencyMismatch

Number = Union[int, float, str, Decimal]

# ISO 4217 currencies whose minor unit is not two digits
_CURRENCY_SCALES = {
    'BIF': 0, 'CLP': 0, 'DJF': 0, 'GNF': 0, 'ISK': 0, 'JPY': 0, 'KMF': 0,
    'KRW': 0, 'PYG': 0, 'RWF': 0, 'UGX': 0, 'UYI': 0, 'VND': 0, 'VUV': 0,
    'XAF': 0, 'XOF': 0, 'XPF': 0,
    'BHD': 3, 'IQD': 3, 'JOD': 3, 'KWD': 3, 'LYD': 3, 'OMR': 3, 'TND': 3,
    'CLF': 4, 'UYW': 4,
}
DEFAULT_CURRENCY_SCALE = 2


def currency_scale(currency: str) -> int:
    """Number of fractional digits of ``currency``'s minor unit."""
    return _CURRENCY_SCALES.get(currency, DEFAULT_CURRENCY_SCALE)


def normalize_currency(currency: str) -> str:
    code = str(currency or '').strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Currency must be a 3-letter code, got {currency!r}")
    return code


def to_decimal(value: Number) -> Decimal:
    """Convert a loose numeric value to a finite Decimal without float artifacts."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except decimal.InvalidOperation as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Numeric value must be finite, got {value!r}")
    return result


def _working_context(prec: int) -> decimal.Context:
    # ROUND_05UP keeps a later quantize from double rounding
    return decimal.Context(prec=max(28, prec), rounding=decimal.ROUND_05UP)


def _exact_context(*values: Decimal) -> decimal.Context:
    """Context wide enough to add or multiply ``values`` without rounding."""
    digits = sum(len(v.as_tuple().digits) for v in values)
    span = max(v.adjusted() for v in values) - min(v.as_tuple().exponent for v in values)
    return _working_context(digits + span + 2)


def add(a: Decimal, b: Decimal) -> Decimal:
    return _exact_context(a, b).add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    return _exact_context(a, b).subtract(a, b)


def multiply(a: Number, b: Number) -> Decimal:
    a, b = to_decimal(a), to_decimal(b)
    return _exact_context(a, b).multiply(a, b)


def divide(dividend: Number, divisor: Number, scale: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Divide two decimals, keeping ``scale`` fractional digits."""
    dividend, divisor = to_decimal(dividend), to_decimal(divisor)
    if divisor == 0:
        raise ZeroDivisionError("Division by zero")
    # Two guard digits past ``scale`` before the final rounding
    context = _working_context(dividend.adjusted() - divisor.adjusted() + scale + 4)
    return quantize(context.divide(dividend, divisor), scale, rounding)


def quantize(value: Decimal, scale: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    # Enough precision for the integer part, whatever the context default is
    context = decimal.Context(prec=max(28, value.adjusted() + scale + 2), rounding=rounding)
    return value.quantize(Decimal(1).scaleb(-scale), context=context)


@dataclass(frozen=True)
class Money:
    """
    Money value object.

    ``amount`` always carries exactly ``currency_scale(currency)`` fractional
    digits. Operands of a single operation must share the same currency.
    """

    amount: Decimal
    currency: str

    def __post_init__(self):
        currency = normalize_currency(self.currency)
        object.__setattr__(self, 'currency', currency)
        object.__setattr__(self, 'amount', quantize(to_decimal(self.amount), currency_scale(currency)))

    @classmethod
    def of(cls, amount: Number, currency: str, rounding: str = ROUND_HALF_UP) -> 'Money':
        """Create Money from a major-unit amount, rounding to the minor unit."""
        currency = normalize_currency(currency)
        return cls(quantize(to_decimal(amount), currency_scale(currency), rounding), currency)

    @classmethod
    def of_minor(cls, amount: Union[int, str], currency: str) -> 'Money':
        """Create Money from an integer amount of minor units (cents)."""
        if isinstance(amount, bool):
            raise ValueError(f"Invalid minor amount: {amount!r}")
        minor = to_decimal(amount)
        if minor != minor.to_integral_value():
            raise ValueError(f"Minor amount must be an integer, got {amount!r}")
        currency = normalize_currency(currency)
        return cls(minor.scaleb(-currency_scale(currency), context=_exact_context(minor)), currency)

    @classmethod
    def zero(cls, currency: str) -> 'Money':
        return cls(Decimal(0), currency)

    @property
    def scale(self) -> int:
        return currency_scale(self.currency)

    @property
    def minor_amount(self) -> int:
        """Amount expressed as an integer number of minor units."""
        return int(self.amount.scaleb(self.scale, context=_exact_context(self.amount)))

    def _check_currency(self, other: 'Money') -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(self.currency, other.currency)

    def plus(self, other: 'Money', rounding: str = ROUND_HALF_UP) -> 'Money':
        self._check_currency(other)
        return Money(quantize(add(self.amount, other.amount), self.scale, rounding), self.currency)

    def minus(self, other: 'Money', rounding: str = ROUND_HALF_UP) -> 'Money':
        self._check_currency(other)
        return Money(quantize(subtract(self.amount, other.amount), self.scale, rounding), self.currency)

    def multiplied_by(self, factor: Number, rounding: str = ROUND_HALF_UP) -> 'Money':
        """Multiply by a decimal factor, rounding the product to the minor unit."""
        return Money(quantize(multiply(self.amount, factor), self.scale, rounding), self.currency)

    def negated(self) -> 'Money':
        return Money(self.amount.copy_negate(), self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __add__(self, other: 'Money') -> 'Money':
        return self.plus(other)

    def __sub__(self, other: 'Money') -> 'Money':
        return self.minus(other)

    def __neg__(self) -> 'Money':
        return self.negated()

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.currency} {self.amount}"
