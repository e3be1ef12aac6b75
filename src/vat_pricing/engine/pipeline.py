"""
Modifier pipeline - applies modifiers to a running price, phase by phase.
"""
from decimal import ROUND_HALF_UP
from typing import Iterable, Optional

from .models import ModificationRecord
from .modifiers import PriceAmendable
from .money import Money


def split_phases(modifiers: Iterable[PriceAmendable], before_vat: bool) -> list[PriceAmendable]:
    """Modifiers of one VAT phase, in insertion order."""
    return [m for m in modifiers if bool(m.is_before_vat()) == before_vat]


def apply_phase(
    base: Money,
    modifiers: Iterable[PriceAmendable],
    rounding: str = ROUND_HALF_UP,
    ledger: Optional[list[ModificationRecord]] = None,
) -> Money:
    """
    Fold ``modifiers`` over ``base`` in order.

    Each modifier receives the value left by the previous one. A None result
    keeps the running value and is not recorded. When ``ledger`` is given,
    every other result appends its signed delta to it.
    """
    running = base
    for modifier in modifiers:
        result = modifier.apply(running)
        if result is None:
            continue

        if ledger is not None:
            ledger.append(ModificationRecord(
                type=modifier.type(),
                key=modifier.key(),
                amount=result.minus(running, rounding),
            ))

        running = result
    return running
