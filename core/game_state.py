"""Game state store: resource ledger, cost lookahead and mutating actions."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple

from . import config
from .costs import missing_for, scaled_cost
from .resource_ledger import ResourceLedger
from .resources import Resource, normalise_mapping, resource_key


logger = logging.getLogger(__name__)


class InvalidResourceError(ValueError):
    """Raised when a cost is requested for a resource that cannot be purchased."""

    def __init__(self, resource: object):
        self.resource = resource
        super().__init__(f"Resource is not purchasable: {resource}")


class GameState:
    """Central storage for all mutable game data.

    A single re-entrant lock guards the ledger so that the generation loop
    thread and request threads observe each action as one step.
    """

    def __init__(
        self,
        starting_resources: Mapping[Resource | str, int] | None = None,
        cost_multiplier: float | None = None,
        base_costs: Mapping[Resource | str, Mapping[Resource | str, float]] | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._starting_resources: Dict[str, int] = {
            key: int(amount)
            for key, amount in normalise_mapping(
                config.STARTING_RESOURCES if starting_resources is None else starting_resources
            ).items()
        }
        self.cost_multiplier = float(
            config.COST_MULTIPLIER if cost_multiplier is None else cost_multiplier
        )
        self.base_costs: Dict[str, Dict[str, float]] = {
            resource_key(resource): normalise_mapping(cost)
            for resource, cost in (
                config.BASE_COSTS if base_costs is None else base_costs
            ).items()
        }
        config.validate_rules(self._starting_resources, self.cost_multiplier, self.base_costs)
        self._state_version = 0
        self._initialise_state()

    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._initialise_state()

    def _initialise_state(self) -> None:
        with self._lock:
            self.ledger = ResourceLedger(self._starting_resources)
            self.ledger.ensure(self.base_costs)
            self._state_version = 0

    @property
    def version(self) -> int:
        with self._lock:
            return int(self._state_version)

    # ------------------------------------------------------------------
    # Derived values

    def get_amount(self, resource: Resource | str) -> int:
        with self._lock:
            return self.ledger.get(resource)

    @property
    def energy(self) -> int:
        return self.get_amount(Resource.ENERGY)

    @property
    def energy_per_click(self) -> int:
        return self.get_amount(Resource.CAPACITORS)

    @property
    def energy_per_second(self) -> int:
        return self.get_amount(Resource.CIRCUITS)

    def next_cost(self, resource: Resource | str) -> Dict[str, int]:
        """Return the cost of the next unit of ``resource``.

        The exponent is the number currently owned, so successive units grow
        by a constant ratio. Raises :class:`InvalidResourceError` for names
        that have no base cost.
        """

        with self._lock:
            return self._next_cost_locked(self._purchasable_key(resource))

    def can_afford(self, resource: Resource | str) -> bool:
        with self._lock:
            cost = self._next_cost_locked(self._purchasable_key(resource))
            return self.ledger.has(cost)

    @property
    def next_capacitor_cost(self) -> Dict[str, int]:
        return self.next_cost(Resource.CAPACITORS)

    @property
    def next_circuit_cost(self) -> Dict[str, int]:
        return self.next_cost(Resource.CIRCUITS)

    @property
    def can_afford_capacitor(self) -> bool:
        return self.can_afford(Resource.CAPACITORS)

    @property
    def can_afford_circuit(self) -> bool:
        return self.can_afford(Resource.CIRCUITS)

    def _purchasable_key(self, resource: Resource | str) -> str:
        try:
            key = resource_key(resource)
        except ValueError as exc:
            raise InvalidResourceError(resource) from exc
        if key not in self.base_costs:
            raise InvalidResourceError(resource)
        return key

    def _next_cost_locked(self, key: str) -> Dict[str, int]:
        return scaled_cost(self.base_costs[key], self.cost_multiplier, self.ledger.get(key))

    # ------------------------------------------------------------------
    # Actions

    def generate_energy(self, amount: Optional[int] = None) -> int:
        """Add ``amount`` energy, or the per-click amount when omitted.

        Returns the change actually applied; energy is clamped at zero, so a
        negative amount larger than the balance removes only what is there.
        """

        with self._lock:
            delta = self.ledger.get(Resource.CAPACITORS) if amount is None else int(amount)
            before = self.ledger.get(Resource.ENERGY)
            if delta:
                self.ledger.add({Resource.ENERGY: delta})
            gained = self.ledger.get(Resource.ENERGY) - before
            if gained:
                self._state_version += 1
            return gained

    def purchase(self, resource: Resource | str) -> bool:
        """Buy one unit of ``resource`` if the next cost is affordable.

        Unaffordable purchases leave the ledger untouched and return ``False``.
        """

        purchased, _ = self.try_purchase(resource)
        return purchased

    def try_purchase(self, resource: Resource | str) -> Tuple[bool, Dict[str, int]]:
        """Like :meth:`purchase` but also return the cost that was checked.

        The cost, the affordability check and the debit all see the same
        ledger state.
        """

        key = self._purchasable_key(resource)
        with self._lock:
            cost = self._next_cost_locked(key)
            if not self.ledger.consume(cost):
                logger.debug(
                    "Purchase rejected resource=%s missing=%s",
                    key,
                    missing_for(cost, self.ledger.snapshot()),
                )
                return False, cost
            self.ledger.add({key: 1})
            self._state_version += 1
            owned = self.ledger.get(key)
        logger.info("Purchased %s cost=%s owned=%s", key, cost, owned)
        return True, cost

    def add_capacitor(self) -> bool:
        return self.purchase(Resource.CAPACITORS)

    def add_circuit(self) -> bool:
        return self.purchase(Resource.CIRCUITS)

    # ------------------------------------------------------------------
    # Snapshots

    def resources_snapshot(self) -> Dict[str, int]:
        with self._lock:
            return self.ledger.snapshot()

    def costs_snapshot(self) -> Dict[str, Dict[str, object]]:
        with self._lock:
            payload: Dict[str, Dict[str, object]] = {}
            for key in self.base_costs:
                cost = self._next_cost_locked(key)
                payload[key] = {
                    "cost": cost,
                    "can_afford": self.ledger.has(cost),
                    "owned": self.ledger.get(key),
                }
            return payload

    def snapshot_state(self) -> Dict[str, object]:
        with self._lock:
            return {
                "resources": self.resources_snapshot(),
                "energy": self.ledger.get(Resource.ENERGY),
                "energy_per_click": self.ledger.get(Resource.CAPACITORS),
                "energy_per_second": self.ledger.get(Resource.CIRCUITS),
                "cost_multiplier": self.cost_multiplier,
                "costs": self.costs_snapshot(),
                "version": int(self._state_version),
            }

    def response_metadata(self, version: Optional[int] = None) -> Dict[str, object]:
        version_value = self.version if version is None else int(version)
        timestamp = (
            datetime.now(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        return {
            "request_id": uuid.uuid4().hex,
            "server_time": timestamp,
            "version": version_value,
        }
