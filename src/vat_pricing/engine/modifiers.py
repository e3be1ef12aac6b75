"""
Price modifiers - adjustments applied to a running Money value.

A modifier is anything implementing PriceAmendable. Loose values (numbers,
Money, callables, amendable classes) are resolved into one by make_modifier.
The rule-action amendables mirror the pricing rule vocabulary
(discount_percent, discount_amount, override_unit_price, price_floor, ...).
"""
import inspect
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Optional, Union

from .errors import CurrencyMismatch, InvalidModifier
from .money import Money, Number, multiply, to_decimal

Effect = Callable[[Money], Optional[Money]]


class ModifierType(str, Enum):
    """Classification recorded in the modification ledger."""

    TAX = "tax"
    DISCOUNT = "discount"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


class PriceAmendable(ABC):
    """Capability every price modifier implements."""

    @abstractmethod
    def apply(self, value: Money) -> Optional[Money]:
        """
        Return the modified value, or None to leave ``value`` unchanged.

        A None result is not recorded in the ledger. Any Money result is,
        even one equal to ``value``.
        """

    @abstractmethod
    def key(self) -> Optional[str]:
        """Identifier of this modifier in the ledger."""

    @abstractmethod
    def type(self) -> Optional[str]:
        """Ledger classification (see ModifierType)."""

    @abstractmethod
    def is_before_vat(self) -> bool:
        """Whether this modifier runs before the VAT is computed."""


class Modifier(PriceAmendable):
    """Generic modifier wrapping a plain effect function."""

    def __init__(
        self,
        effect: Effect,
        key: Optional[str] = None,
        type: Optional[Union[ModifierType, str]] = None,
        before_vat: bool = False,
    ):
        self._effect = effect
        self._key = key
        self._type = type
        self._before_vat = bool(before_vat)

    def apply(self, value: Money) -> Optional[Money]:
        return self._effect(value)

    def key(self) -> Optional[str]:
        return self._key

    def type(self) -> Optional[str]:
        return self._type

    def is_before_vat(self) -> bool:
        return self._before_vat

    def __repr__(self) -> str:
        return f"Modifier(key={self._key!r}, type={self._type!r}, before_vat={self._before_vat})"


class _ClassifiedModifier(PriceAmendable):
    """Shared key/type/phase storage for the rule-action amendables."""

    default_type: Optional[ModifierType] = ModifierType.CUSTOM

    def __init__(self, key=None, type=None, before_vat=False, rounding=ROUND_HALF_UP):
        self._key = key or None
        self._type = type or self.default_type
        self._before_vat = bool(before_vat)
        self.rounding = rounding

    def key(self) -> Optional[str]:
        return self._key

    def type(self) -> Optional[str]:
        return self._type

    def is_before_vat(self) -> bool:
        return self._before_vat


class PercentageModifier(_ClassifiedModifier):
    """Add ``percent``% of the running value (negative for a discount)."""

    def __init__(self, percent: Number, key=None, type=None, before_vat=False, rounding=ROUND_HALF_UP):
        super().__init__(key, type, before_vat, rounding)
        self.percent = to_decimal(percent)

    def apply(self, value: Money) -> Optional[Money]:
        delta = value.multiplied_by(multiply(self.percent, Decimal("0.01")), self.rounding)
        return value.plus(delta, self.rounding)


class OverridePriceModifier(_ClassifiedModifier):
    """Replace the running value with a fixed amount."""

    def __init__(self, amount: Money, key=None, type=None, before_vat=False, rounding=ROUND_HALF_UP):
        super().__init__(key, type, before_vat, rounding)
        self.amount = amount

    def apply(self, value: Money) -> Optional[Money]:
        if value.currency != self.amount.currency:
            raise CurrencyMismatch(value.currency, self.amount.currency)
        return self.amount


class PriceFloorModifier(_ClassifiedModifier):
    """Raise the running value to ``amount``; no-op when already above it."""

    def __init__(self, amount: Money, key=None, type=None, before_vat=False, rounding=ROUND_HALF_UP):
        super().__init__(key, type, before_vat, rounding)
        self.amount = amount

    def apply(self, value: Money) -> Optional[Money]:
        if value >= self.amount:
            return None
        return self.amount


def _adder(addend: Money, rounding: str) -> Effect:
    def effect(value: Money) -> Money:
        return value.plus(addend, rounding)
    return effect


def _is_numeric(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, str):
        try:
            to_decimal(value)
        except ValueError:
            return False
        return True
    return False


def extract_modifier_arguments(arguments: tuple) -> tuple:
    """
    Map loose positional arguments to (key, type, before_vat).

    Missing trailing arguments default to (None, None, False) and falsy
    key/type values normalize to None.
    """
    key = arguments[0] if len(arguments) > 0 else None
    type_ = arguments[1] if len(arguments) > 1 else None
    before_vat = arguments[2] if len(arguments) > 2 else False
    return key or None, type_ or None, bool(before_vat)


def _check_instance_classification(instance: PriceAmendable, arguments: tuple) -> None:
    """An instance keeps its own key/type/phase; conflicting arguments are an error."""
    key, type_, before_vat = extract_modifier_arguments(arguments)
    conflicts = []
    if key is not None and key != instance.key():
        conflicts.append(f"key {key!r} != {instance.key()!r}")
    if type_ is not None and type_ != instance.type():
        conflicts.append(f"type {str(type_)!r} != {str(instance.type())!r}")
    if before_vat and not instance.is_before_vat():
        conflicts.append("before_vat requested on an after-VAT modifier")
    if conflicts:
        raise InvalidModifier(
            f"{type(instance).__name__} instance carries its own classification: " + "; ".join(conflicts)
        )


def make_modifier(source, *arguments, currency: str, rounding: str = ROUND_HALF_UP) -> PriceAmendable:
    """
    Resolve a loose modifier source into a PriceAmendable.

    Precedence:
    1. numeric value -> fixed Money amount in ``currency``, added like (2)
    2. Money -> effect adding that amount
    3. callable -> Modifier(effect, key, type, before_vat) from ``arguments``
    4. PriceAmendable subclass -> instantiated with ``arguments``;
       PriceAmendable instance -> used as is; arguments that contradict
       its key, type or phase raise InvalidModifier
    """
    if source is None:
        raise InvalidModifier("Cannot create modifier from None value.")

    if _is_numeric(source):
        source = Money.of(source, currency, rounding)

    if isinstance(source, Money):
        source = _adder(source, rounding)

    if inspect.isclass(source):
        if not issubclass(source, PriceAmendable):
            raise InvalidModifier(
                f"Price modifier class {source.__name__} should implement PriceAmendable."
            )
        try:
            return source(*arguments)
        except TypeError as e:
            raise InvalidModifier(f"Cannot instantiate {source.__name__}: {e}") from e

    if isinstance(source, PriceAmendable):
        _check_instance_classification(source, arguments)
        return source

    if callable(source):
        key, type_, before_vat = extract_modifier_arguments(arguments)
        return Modifier(source, key, type_, before_vat)

    raise InvalidModifier(
        f"Cannot create modifier from {type(source).__name__} value; expected a number, "
        "Money, a callable or a PriceAmendable."
    )


ACTION_TYPES = {
    'discount_percent',
    'discount_amount',
    'tax_percent',
    'tax_amount',
    'override_unit_price',
    'price_floor',
}


def modifier_from_action(
    action_type: str,
    value: Number,
    currency: str,
    key: Optional[str] = None,
    before_vat: bool = False,
    rounding: str = ROUND_HALF_UP,
) -> PriceAmendable:
    """
    Build a modifier from a pricing rule action.

    Amount values are major units in ``currency``; percent values are
    percentages (``10`` means 10%). Discounts always reduce the price.
    """
    if action_type not in ACTION_TYPES:
        raise InvalidModifier(
            f"Unknown action type '{action_type}'. Expected one of: {', '.join(sorted(ACTION_TYPES))}"
        )
    try:
        number = to_decimal(value)
    except ValueError as e:
        raise InvalidModifier(f"Invalid value for {action_type}: {value!r}") from e

    if action_type == 'discount_percent':
        return PercentageModifier(number.copy_abs().copy_negate(), key, ModifierType.DISCOUNT, before_vat, rounding)

    elif action_type == 'tax_percent':
        return PercentageModifier(number, key, ModifierType.TAX, before_vat, rounding)

    elif action_type == 'discount_amount':
        amount = Money.of(number.copy_abs().copy_negate(), currency, rounding)
        return Modifier(_adder(amount, rounding), key, ModifierType.DISCOUNT, before_vat)

    elif action_type == 'tax_amount':
        amount = Money.of(number, currency, rounding)
        return Modifier(_adder(amount, rounding), key, ModifierType.TAX, before_vat)

    elif action_type == 'override_unit_price':
        return OverridePriceModifier(Money.of(number, currency, rounding), key, None, before_vat, rounding)

    return PriceFloorModifier(Money.of(number, currency, rounding), key, None, before_vat, rounding)
