"""Centralised configuration for the energy clicker backend."""
from __future__ import annotations

from typing import Dict, Mapping

from .resources import Resource, normalise_mapping, resource_key

# ---------------------------------------------------------------------------
# Starting ledger

STARTING_RESOURCES: Dict[str, int] = {
    Resource.ENERGY.value: 0,
    Resource.CAPACITORS.value: 1,
    Resource.CIRCUITS.value: 0,
}

# ---------------------------------------------------------------------------
# Cost scaling

COST_MULTIPLIER = 1.35

BASE_COSTS: Dict[str, Dict[str, float]] = {
    Resource.CAPACITORS.value: normalise_mapping({Resource.ENERGY: 10}),
    Resource.CIRCUITS.value: normalise_mapping(
        {Resource.ENERGY: 25, Resource.CAPACITORS: 10}
    ),
}

# ---------------------------------------------------------------------------
# Passive generation

# Nominal period of the passive generation tick, in seconds.
TICK_INTERVAL_SECONDS = 1.0


class InvalidConfigurationError(ValueError):
    """Raised when starting values break the ledger invariants."""


def validate_rules(
    starting_resources: Mapping[str, int],
    cost_multiplier: float,
    base_costs: Mapping[str, Mapping[str, float]],
) -> None:
    """Check the invariants every rule set must satisfy."""

    if not cost_multiplier > 1:
        raise InvalidConfigurationError(
            f"Cost multiplier must be greater than 1, got {cost_multiplier}"
        )
    for resource, amount in starting_resources.items():
        if int(amount) < 0:
            raise InvalidConfigurationError(
                f"Starting amount for {resource} is negative: {amount}"
            )
    for resource, cost in base_costs.items():
        key = resource_key(resource)
        if key == Resource.ENERGY.value:
            raise InvalidConfigurationError("Energy cannot be a purchasable resource")
        if key not in starting_resources:
            raise InvalidConfigurationError(
                f"Purchasable resource {key} has no starting amount"
            )
        for cost_key, amount in cost.items():
            if amount is not None and amount < 0:
                raise InvalidConfigurationError(
                    f"Base cost of {key} in {cost_key} is negative: {amount}"
                )
