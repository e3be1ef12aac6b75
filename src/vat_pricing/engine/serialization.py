"""
Serialized price records.

A Price serializes to
{base, currency, units, vat, total: {exclusive, inclusive}} with amounts in
minor units. Modifiers are not part of the record.
"""
import json
from collections.abc import Mapping
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidSerializedPrice


class SerializedTotals(BaseModel):
    """Units-multiplied totals in minor units."""
    exclusive: int
    inclusive: int


class SerializedPrice(BaseModel):
    """Wire shape of a Price."""
    model_config = ConfigDict(extra='ignore')

    base: int
    currency: str
    units: Union[int, float, str] = 1
    vat: Optional[Union[int, float, str]] = None
    total: Optional[SerializedTotals] = None


def to_number(value: Decimal) -> Union[int, float, str]:
    """
    Plain JSON value for a Decimal: int when integral, float when the float
    reads back as the same Decimal, otherwise the decimal string.
    """
    if value == value.to_integral_value():
        return int(value)
    number = float(value)
    if Decimal(repr(number)) == value:
        return number
    return str(value)


def parse_record(value) -> SerializedPrice:
    """
    Validate a JSON string/bytes or a mapping as a serialized price.

    Raises:
        InvalidSerializedPrice: input is neither valid JSON nor a compatible mapping
    """
    if isinstance(value, (str, bytes, bytearray)):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidSerializedPrice(f"Cannot create Price from invalid JSON: {e}") from e

    if isinstance(value, SerializedPrice):
        return value

    if not isinstance(value, Mapping):
        raise InvalidSerializedPrice(
            "Cannot create Price from invalid argument (expects JSON string or mapping)"
        )

    try:
        return SerializedPrice.model_validate(dict(value))
    except ValidationError as e:
        raise InvalidSerializedPrice(f"Invalid serialized price: {e}") from e
