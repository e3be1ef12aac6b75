"""
Data models for the pricing engine.

Uses dataclasses for the modification ledger entries.
"""
from dataclasses import dataclass
from typing import Optional

from .money import Money


@dataclass(frozen=True)
class ModificationRecord:
    """Signed effect of one modifier on the running price."""
    type: Optional[str]
    key: Optional[str]
    amount: Money  # result - input

    def to_dict(self) -> dict:
        """Plain representation with the amount in minor units."""
        return {
            "type": str(self.type) if self.type is not None else None,
            "key": self.key,
            "amount": self.amount.minor_amount,
            "currency": self.amount.currency,
        }

    def describe(self) -> str:
        """Human-readable ledger line."""
        label = self.key or "unnamed"
        if self.type:
            return f"→ {self.type}: {label} = {self.amount}"
        return f"→ {label} = {self.amount}"
