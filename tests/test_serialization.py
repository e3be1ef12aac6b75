import pytest
import sys
import os
import json
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from vat_pricing.engine import InvalidSerializedPrice, Money, Price


@pytest.fixture
def promo_price():
    return Price.of_minor(1000, 'USD', 2).add_discount(-1, 'promo').set_vat(21)


def test_serialized_shape(promo_price):
    assert promo_price.to_dict() == {
        'base': 1000,
        'currency': 'USD',
        'units': 2,
        'vat': 21.0,
        'total': {
            'exclusive': 1800,
            'inclusive': 2220,
        },
    }
    assert json.loads(promo_price.to_json()) == promo_price.to_dict()


def test_fractional_units_and_missing_vat():
    record = Price.of_minor(999, 'EUR', '1,5').to_dict()
    assert record['units'] == 1.5
    assert record['vat'] is None
    assert record['total'] == {'exclusive': 1499, 'inclusive': 1499}


def test_round_trip_without_modifiers():
    original = Price.of_minor(1234, 'EUR', '2.5').set_vat('5,5%')
    restored = Price.from_json(original.to_json())

    assert restored.base() == original.base()
    assert restored.units() == original.units()
    assert restored.exclusive() == original.exclusive()
    assert restored.inclusive() == original.inclusive()
    assert restored.vat_percentage() == 5.5


def test_modifiers_are_not_serialized(promo_price):
    restored = Price.from_json(promo_price.to_dict())

    assert restored.modifications() == []
    assert restored.exclusive() == Money.of('20.00', 'USD')
    assert restored.inclusive() == Money.of('24.20', 'USD')


def test_hydrate_from_mapping_with_loose_values():
    price = Price.from_json({'base': '500', 'currency': 'eur', 'units': '1,5', 'vat': '21 %'})

    assert price.base() == Money.of('5.00', 'EUR')
    assert price.units() == Decimal('1.5')
    assert price.vat_percentage() == 21.0


def test_hydrate_defaults():
    price = Price.from_json(b'{"base": 100, "currency": "USD"}')
    assert price.units() == Decimal('1')
    assert price.vat() is None


@pytest.mark.parametrize("value", [
    'not json',
    '[1, 2, 3]',
    'null',
    42,
    ['base', 100],
    {'currency': 'USD'},
    {'base': 10.5, 'currency': 'USD'},
    {'base': 100, 'currency': 'DOLLARS'},
    {'base': 100, 'currency': 'USD', 'units': -1},
    {'base': 100, 'currency': 'USD', 'vat': 'lots'},
    {'base': 100, 'currency': 'USD', 'units': 'nan'},
    {'base': 100, 'currency': 'USD', 'units': 'Infinity'},
    {'base': 100, 'currency': 'USD', 'vat': 'inf'},
])
def test_invalid_records(value):
    with pytest.raises(InvalidSerializedPrice) as exc:
        Price.from_json(value)
    assert isinstance(exc.value, ValueError)


def test_units_beyond_float_precision_round_trip():
    original = Price.of_minor(1000, 'USD', '1.00000000000000001')
    record = original.to_dict()

    assert record['units'] == '1.00000000000000001', "Units a float cannot hold are written as a string"
    assert json.loads(original.to_json())['units'] == '1.00000000000000001'

    restored = Price.from_json(original.to_json())
    assert restored.units() == Decimal('1.00000000000000001')
    assert restored.to_dict() == record
