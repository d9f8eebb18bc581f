"""Resource ledger: non-negative balances keyed by resource id."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Dict, Mapping


class InsufficientResourceError(RuntimeError):
    """Raised when a debit exceeds the available balance."""

    def __init__(self, resource_id: str, requested: float, available: float) -> None:
        super().__init__(f"Insufficient {resource_id}: requested {requested:g}, available {available:g}")
        self.resource_id = resource_id
        self.requested = requested
        self.available = available


def _require_positive(amount: float, kind: str) -> None:
    if not (math.isfinite(amount) and amount > 0):
        raise ValueError(f"{kind} amount must be positive and finite, got {amount!r}")


@dataclass(slots=True)
class ResourceLedger:
    balances: Dict[str, float] = field(default_factory=dict)

    def get(self, resource_id: str) -> float:
        return float(self.balances.get(resource_id, 0.0))

    def credit(self, resource_id: str, amount: float) -> float:
        _require_positive(amount, "Credit")
        self.balances[resource_id] = self.get(resource_id) + float(amount)
        return self.balances[resource_id]

    def debit(self, resource_id: str, amount: float) -> float:
        _require_positive(amount, "Debit")
        available = self.get(resource_id)
        if available < amount:
            raise InsufficientResourceError(resource_id, float(amount), available)
        self.balances[resource_id] = available - float(amount)
        return self.balances[resource_id]

    def can_afford(self, cost: Mapping[str, float]) -> bool:
        return all(self.get(resource_id) >= float(amount) for resource_id, amount in cost.items())

    def shortfall(self, cost: Mapping[str, float]) -> Dict[str, float]:
        """Return the missing amount per resource (empty when affordable)."""

        missing: Dict[str, float] = {}
        for resource_id, amount in sorted(cost.items()):
            gap = float(amount) - self.get(resource_id)
            if gap > 0:
                missing[resource_id] = gap
        return missing

    def debit_many(self, cost: Mapping[str, float]) -> None:
        if not self.can_afford(cost):
            resource_id, gap = next(iter(self.shortfall(cost).items()))
            raise InsufficientResourceError(resource_id, self.get(resource_id) + gap, self.get(resource_id))
        for resource_id, amount in cost.items():
            if amount > 0:
                self.debit(resource_id, amount)

    def adjust(self, resource_id: str, delta: float) -> float:
        """Unconditional additive update, floored at zero."""

        if not math.isfinite(delta):
            raise ValueError(f"Adjustment must be finite, got {delta!r}")
        self.balances[resource_id] = max(0.0, self.get(resource_id) + float(delta))
        return self.balances[resource_id]

    def as_dict(self) -> Dict[str, float]:
        return dict(self.balances)

    def signature(self) -> str:
        payload = json.dumps(
            {key: round(value, 6) for key, value in sorted(self.balances.items())},
            sort_keys=True,
            separators=(",", ":"),
        )
        return sha256(payload.encode("utf-8")).hexdigest()


__all__ = ["InsufficientResourceError", "ResourceLedger"]
