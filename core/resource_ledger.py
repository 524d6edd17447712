"""Integer resource ledger backing the game state."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Mapping

from .resources import Resource, resource_key


class ResourceLedger:
    """Open set of named, non-negative integer counters.

    Missing names read as zero. Debits are all-or-nothing and never drive a
    counter below zero.
    """

    def __init__(self, initial: Mapping[Resource | str, int] | None = None) -> None:
        self._amounts: Dict[str, int] = defaultdict(int)
        if initial:
            for resource, amount in initial.items():
                self.set_amount(resource, amount)

    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, int]:
        return {key: int(amount) for key, amount in self._amounts.items()}

    def get(self, resource: Resource | str) -> int:
        return int(self._amounts.get(resource_key(resource), 0))

    def add(self, delta: Mapping[Resource | str, int]) -> None:
        for resource, amount in delta.items():
            if amount == 0:
                continue
            key = resource_key(resource)
            self._amounts[key] = max(0, self.get(key) + int(amount))

    def has(self, requirements: Mapping[Resource | str, int]) -> bool:
        return all(self.get(res) >= amount for res, amount in requirements.items())

    def consume(self, requirements: Mapping[Resource | str, int]) -> bool:
        if not self.has(requirements):
            return False
        for resource, amount in requirements.items():
            if amount <= 0:
                continue
            key = resource_key(resource)
            self._amounts[key] = max(0, self.get(key) - int(amount))
        return True

    def ensure(self, resources: Iterable[Resource | str]) -> None:
        for resource in resources:
            self._amounts.setdefault(resource_key(resource), 0)

    def set_amount(self, resource: Resource | str, amount: int) -> None:
        self._amounts[resource_key(resource)] = max(0, int(amount))
