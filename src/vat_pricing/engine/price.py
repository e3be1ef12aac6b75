"""
Price - aggregates a base amount, a unit count, an optional VAT rate and an
ordered set of modifiers into exclusive and inclusive prices.

Resolution order for the modified base (per unit, exclusive of VAT):
1. Apply the before-VAT modifiers to the base, in insertion order
2. Apply the after-VAT modifiers to that intermediate value
3. Record each modifier's signed effect in the modifications ledger

The VAT amount is computed on the base adjusted by the before-VAT modifiers
only. The modified base and its ledger are cached until a modifier is added.
"""
import json
import logging
import threading
from decimal import Decimal
from typing import Optional, Union

from ..config.settings import Settings, get_settings
from .errors import CurrencyMismatch, InvalidSerializedPrice, UnsupportedFactoryCall
from .models import ModificationRecord
from .modifiers import ModifierType, PriceAmendable, make_modifier
from .money import Money, Number, divide, multiply, normalize_currency, to_decimal
from .pipeline import apply_phase, split_phases
from .serialization import parse_record, to_number

logger = logging.getLogger(__name__)

MONEY_FACTORIES = ('of', 'of_minor', 'zero')


def normalize_scalar(value: Union[Number, None], strip: str = ' ') -> Decimal:
    """Parse a decimal-separator tolerant scalar ("1,5", " 21 % ")."""
    if isinstance(value, str):
        value = value.strip().strip(strip).replace(',', '.')
    return to_decimal(value)


class Price:
    """
    A base unit price with modifiers, units and VAT.

    Rounding follows ``settings``; when no settings are given the
    process-wide settings are read each time a value is computed.
    """

    def __init__(self, base: Money, units: Number = 1, settings: Optional[Settings] = None):
        if not isinstance(base, Money):
            raise TypeError(f"Price base must be Money, got {type(base).__name__}")

        self._base = base
        self._settings = settings
        self._units = Decimal(1)
        self._vat: Optional[Decimal] = None
        self._modifiers: list[PriceAmendable] = []

        # Memoized modified base and the ledger built alongside it
        self._excl: Optional[Money] = None
        self._modifications: list[ModificationRecord] = []
        self._lock = threading.RLock()

        self.set_units(units)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def of_minor(cls, amount: Union[int, str], currency: str, units: Number = 1, settings: Optional[Settings] = None) -> 'Price':
        """Create a Price from an amount in minor units (cents)."""
        return cls(Money.of_minor(amount, currency), units, settings)

    @classmethod
    def of(cls, amount: Number, currency: str, units: Number = 1, settings: Optional[Settings] = None) -> 'Price':
        """Create a Price from a major-unit amount."""
        rounding = (settings or get_settings()).rounding
        return cls(Money.of(amount, currency, rounding), units, settings)

    @classmethod
    def create(cls, method: str, *arguments) -> 'Price':
        """
        Build a Price from a currency code or a Money factory name.

        ``Price.create('EUR', 1000, 2)`` reads the amount as minor units with
        optional units; ``Price.create('of', '10.00', 'EUR')`` delegates to
        ``Money.of`` with a single unit.
        """
        if method in MONEY_FACTORIES:
            try:
                base = getattr(Money, method)(*arguments)
            except TypeError as e:
                raise UnsupportedFactoryCall(f"Invalid arguments for Money.{method}: {e}") from e
            return cls(base)

        try:
            currency = normalize_currency(method)
        except ValueError as e:
            raise UnsupportedFactoryCall(
                f"Call to undefined factory {cls.__name__}.{method}: "
                "expected a currency code or one of " + ", ".join(MONEY_FACTORIES)
            ) from e

        if not arguments:
            raise UnsupportedFactoryCall(f"{cls.__name__}.{method} requires a minor amount")

        units = arguments[1] if len(arguments) > 1 else 1
        return cls.of_minor(arguments[0], currency, units)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def rounding(self) -> str:
        return self.settings.rounding

    # ------------------------------------------------------------------
    # Base, units, currency
    # ------------------------------------------------------------------

    def currency(self) -> str:
        return self._base.currency

    def base(self, per_unit: bool = True) -> Money:
        """Base value, optionally multiplied by the units count."""
        if per_unit:
            return self._base
        return self._base.multiplied_by(self._units, self.rounding)

    def set_units(self, value: Number) -> 'Price':
        """Define the units count ("1,5" and "1.5" are equivalent)."""
        units = normalize_scalar(value)
        if units < 0:
            raise ValueError(f"Units count cannot be negative: {value!r}")
        self._units = units
        return self

    def units(self) -> Decimal:
        return self._units

    # ------------------------------------------------------------------
    # VAT
    # ------------------------------------------------------------------

    def set_vat(self, value: Union[Money, Number, None] = None) -> 'Price':
        """
        Define the VAT rate.

        Args:
            value: None to clear the VAT; a percentage ("21", "21 %", "5,5",
                21); or the VAT Money amount for the current base, from which
                the percentage is derived.
        """
        if value is None:
            self._vat = None
            return self

        settings = self.settings

        if isinstance(value, Money):
            if value.currency != self._base.currency:
                raise CurrencyMismatch(self._base.currency, value.currency)
            if self._base.is_zero():
                raise ValueError("Cannot derive a VAT rate from a zero base price")
            self._vat = divide(
                multiply(value.amount, 100), self._base.amount,
                settings.vat_rate_scale, settings.rounding
            )
            return self

        rate = normalize_scalar(value, strip=' %')
        if rate < 0:
            raise ValueError(f"VAT rate cannot be negative: {value!r}")
        self._vat = rate
        return self

    def vat(self, per_unit: bool = False) -> Optional[Money]:
        """VAT amount, computed on the base adjusted by before-VAT modifiers."""
        if self._vat is None:
            return None

        settings = self.settings
        base = apply_phase(self._base, split_phases(self._modifiers, True), settings.rounding)
        factor = divide(self._vat, 100, settings.vat_division_scale, settings.rounding)

        return base.multiplied_by(multiply(factor, 1 if per_unit else self._units), settings.rounding)

    def vat_percentage(self) -> Optional[float]:
        return None if self._vat is None else float(self._vat)

    # ------------------------------------------------------------------
    # Exclusive / inclusive
    # ------------------------------------------------------------------

    def exclusive(self, per_unit: bool = False) -> Money:
        """Price after modifiers, excluding VAT."""
        return self.get_modified_base().multiplied_by(1 if per_unit else self._units, self.rounding)

    def inclusive(self, per_unit: bool = False) -> Money:
        """Exclusive price plus VAT."""
        exclusive = self.exclusive(per_unit)
        vat = self.vat(per_unit)
        if vat is None:
            return exclusive
        return exclusive.plus(vat, self.rounding)

    # ------------------------------------------------------------------
    # Modifiers
    # ------------------------------------------------------------------

    def add_tax(self, modifier, key: Optional[str] = None, before_vat: bool = False) -> 'Price':
        return self.add_modifier(modifier, key, ModifierType.TAX, before_vat)

    def add_discount(self, modifier, key: Optional[str] = None, before_vat: bool = False) -> 'Price':
        return self.add_modifier(modifier, key, ModifierType.DISCOUNT, before_vat)

    def add_modifier(self, modifier, *arguments) -> 'Price':
        """
        Append a modifier.

        Args:
            modifier: number, Money, callable, PriceAmendable class or instance
            *arguments: (key, type, before_vat) for numbers, Money and
                callables; constructor arguments for PriceAmendable classes.
                A PriceAmendable instance keeps its own classification, so
                ``add_tax``/``add_discount`` with an instance of another type
                raise InvalidModifier.
        """
        resolved = make_modifier(
            modifier, *arguments,
            currency=self._base.currency,
            rounding=self.rounding,
        )
        with self._lock:
            self._modifiers.append(resolved)
            self.invalidate()
        return self

    def modifiers(self) -> tuple[PriceAmendable, ...]:
        return tuple(self._modifiers)

    def invalidate(self) -> None:
        """Drop the memoized modified base and its ledger."""
        with self._lock:
            self._excl = None
            self._modifications = []

    def modifications(self, type: Optional[Union[ModifierType, str]] = None) -> list[ModificationRecord]:
        """Modification history, optionally restricted to one modifier type."""
        with self._lock:
            self.get_modified_base()
            records = list(self._modifications)

        if type is None:
            return records
        return [record for record in records if record.type == type]

    def get_modified_base(self) -> Money:
        """Per-unit exclusive price; computed once until modifiers change."""
        with self._lock:
            if self._excl is not None:
                return self._excl

            rounding = self.rounding
            ledger: list[ModificationRecord] = []

            without_vat = apply_phase(self._base, split_phases(self._modifiers, True), rounding, ledger)
            self._excl = apply_phase(without_vat, split_phases(self._modifiers, False), rounding, ledger)
            self._modifications = ledger

            logger.debug(
                "Recomputed modified base %s from %s (%d modifiers, %d ledger entries)",
                self._excl, self._base, len(self._modifiers), len(ledger)
            )
            return self._excl

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialized record; amounts in minor units, modifiers omitted."""
        return {
            'base': self._base.minor_amount,
            'currency': self._base.currency,
            'units': to_number(self._units),
            'vat': self.vat_percentage(),
            'total': {
                'exclusive': self.exclusive().minor_amount,
                'inclusive': self.inclusive().minor_amount,
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, value, settings: Optional[Settings] = None) -> 'Price':
        """
        Hydrate a Price from a JSON string or a mapping.

        Raises:
            InvalidSerializedPrice: if the input is not a valid record
        """
        record = parse_record(value)
        try:
            price = cls.of_minor(record.base, record.currency, record.units, settings)
            return price.set_vat(record.vat)
        except ValueError as e:
            raise InvalidSerializedPrice(f"Invalid serialized price: {e}") from e

    def __repr__(self) -> str:
        return (
            f"Price(base={self._base}, units={self._units}, vat={self._vat}, "
            f"modifiers={len(self._modifiers)})"
        )
