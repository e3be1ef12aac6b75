import pytest
import sys
import os
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from vat_pricing.engine.errors import CurrencyMismatch, InvalidModifier
from vat_pricing.engine.modifiers import (
    Modifier,
    ModifierType,
    PriceAmendable,
    extract_modifier_arguments,
    make_modifier,
    modifier_from_action,
)
from vat_pricing.engine.money import Money
from vat_pricing.engine.pipeline import apply_phase, split_phases


def usd(amount):
    return Money.of(amount, 'USD')


class Surcharge(PriceAmendable):
    """Named modifier type used to exercise class resolution."""

    def __init__(self, amount, key='surcharge'):
        self.amount = usd(amount)
        self._key = key

    def apply(self, value):
        return value.plus(self.amount)

    def key(self):
        return self._key

    def type(self):
        return ModifierType.TAX

    def is_before_vat(self):
        return True


class NotAModifier:
    pass


def test_numeric_source_adds_fixed_amount():
    modifier = make_modifier(5, currency='USD')
    assert modifier.apply(usd('10.00')) == usd('15.00')
    assert (modifier.key(), modifier.type(), modifier.is_before_vat()) == (None, None, False)

    modifier = make_modifier('-2.50', 'promo', ModifierType.DISCOUNT, currency='USD')
    assert modifier.apply(usd('10.00')) == usd('7.50')
    assert modifier.key() == 'promo'
    assert modifier.type() == ModifierType.DISCOUNT


def test_money_source_adds_operand():
    modifier = make_modifier(usd('1.25'), 'fee', 'tax', True, currency='USD')
    assert modifier.apply(usd('10.00')) == usd('11.25')
    assert modifier.is_before_vat() is True


def test_callable_source_keeps_explicit_classification():
    def double(value):
        return value.multiplied_by(2)

    modifier = make_modifier(double, 'double', ModifierType.CUSTOM, 1, currency='USD')
    assert isinstance(modifier, Modifier)
    assert modifier.apply(usd('3.00')) == usd('6.00')
    assert modifier.key() == 'double'
    assert modifier.type() == ModifierType.CUSTOM
    assert modifier.is_before_vat() is True


def test_argument_extraction_defaults_and_falsy_values():
    assert extract_modifier_arguments(()) == (None, None, False)
    assert extract_modifier_arguments(('k',)) == ('k', None, False)
    assert extract_modifier_arguments(('', 0)) == (None, None, False)
    assert extract_modifier_arguments(('k', 'tax', 'yes')) == ('k', 'tax', True)


def test_amendable_class_is_instantiated_with_arguments():
    modifier = make_modifier(Surcharge, '0.75', 'extra', currency='USD')
    assert isinstance(modifier, Surcharge)
    assert modifier.key() == 'extra'
    assert modifier.apply(usd('1.00')) == usd('1.75')


def test_amendable_instance_is_used_as_is():
    instance = Surcharge('1.00')
    assert make_modifier(instance, currency='USD') is instance


@pytest.mark.parametrize("source", [None, True, 'ten dollars', object(), NotAModifier, [1, 2]])
def test_invalid_sources_are_rejected(source):
    with pytest.raises(InvalidModifier):
        make_modifier(source, currency='USD')


def test_abstract_amendable_cannot_be_instantiated():
    class Incomplete(PriceAmendable):
        def apply(self, value):
            return value

    with pytest.raises(InvalidModifier):
        make_modifier(Incomplete, currency='USD')


def test_rule_actions():
    twenty = usd('20.00')

    assert modifier_from_action('discount_percent', 10, 'USD').apply(twenty) == usd('18.00')
    assert modifier_from_action('discount_percent', -10, 'USD').apply(twenty) == usd('18.00')
    assert modifier_from_action('tax_percent', '21', 'USD').apply(twenty) == usd('24.20')
    assert modifier_from_action('discount_amount', '1.50', 'USD').apply(twenty) == usd('18.50')
    assert modifier_from_action('tax_amount', 2, 'USD').apply(twenty) == usd('22.00')
    assert modifier_from_action('override_unit_price', '12.99', 'USD').apply(twenty) == usd('12.99')

    discount = modifier_from_action('discount_percent', 10, 'USD', key='spring', before_vat=True)
    assert discount.key() == 'spring'
    assert discount.type() == ModifierType.DISCOUNT
    assert discount.is_before_vat() is True


def test_price_floor_only_applies_below_floor():
    floor = modifier_from_action('price_floor', '15.00', 'USD')
    assert floor.apply(usd('20.00')) is None
    assert floor.apply(usd('10.00')) == usd('15.00')


def test_override_rejects_other_currency():
    override = modifier_from_action('override_unit_price', 5, 'EUR')
    with pytest.raises(CurrencyMismatch):
        override.apply(usd('1.00'))


def test_unknown_action_and_bad_value():
    with pytest.raises(InvalidModifier):
        modifier_from_action('set_tier', 'GOLD', 'USD')
    with pytest.raises(InvalidModifier):
        modifier_from_action('discount_amount', 'lots', 'USD')


def test_phase_split_is_stable():
    a = Modifier(lambda v: v, 'a', before_vat=True)
    b = Modifier(lambda v: v, 'b')
    c = Modifier(lambda v: v, 'c', before_vat=True)
    d = Modifier(lambda v: v, 'd')

    assert [m.key() for m in split_phases([a, b, c, d], True)] == ['a', 'c']
    assert [m.key() for m in split_phases([a, b, c, d], False)] == ['b', 'd']


def test_apply_phase_compounds_and_logs():
    add_one = Modifier(lambda v: v.plus(usd(1)), 'add', ModifierType.TAX)
    skip = Modifier(lambda v: None, 'skip')
    double = Modifier(lambda v: v.multiplied_by(2), 'double')

    ledger = []
    result = apply_phase(usd('10.00'), [add_one, skip, double], ledger=ledger)

    assert result == usd('22.00')
    assert [(r.key, r.amount) for r in ledger] == [('add', usd('1.00')), ('double', usd('11.00'))]

    assert apply_phase(usd('10.00'), [double, add_one]) == usd('21.00')
    assert apply_phase(usd('10.00'), []) == usd('10.00')
    assert Decimal(0) == apply_phase(usd(0), [double]).amount


def test_amendable_instance_rejects_conflicting_classification():
    instance = Surcharge('1.00', key='eco')

    assert make_modifier(instance, None, ModifierType.TAX, True, currency='USD') is instance
    assert make_modifier(instance, 'eco', currency='USD') is instance

    with pytest.raises(InvalidModifier):
        make_modifier(instance, None, ModifierType.DISCOUNT, currency='USD')
    with pytest.raises(InvalidModifier):
        make_modifier(instance, 'other', currency='USD')

    after_vat = Modifier(lambda value: value, 'late', ModifierType.CUSTOM)
    with pytest.raises(InvalidModifier):
        make_modifier(after_vat, None, None, True, currency='USD')


def test_discount_action_on_large_amount_keeps_every_digit():
    modifier = modifier_from_action('discount_amount', '12345678901234567890123456789.99', 'USD')
    assert modifier.apply(usd('12345678901234567890123456790.00')) == usd('0.01')
