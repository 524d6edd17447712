"""Geometric cost scaling for purchasable resources."""
from __future__ import annotations

import math
from typing import Dict, Mapping

from .resources import Resource, resource_key


def scaled_cost(
    base_cost: Mapping[Resource | str, float],
    multiplier: float,
    owned: int,
) -> Dict[str, int]:
    """Return ``floor(base * multiplier ** owned)`` for every entry of ``base_cost``.

    ``owned`` is the count held before the purchase, so the first unit costs
    exactly the base cost and each later unit costs ``multiplier`` times more.
    Entries with no amount are treated as a base cost of zero.
    """

    factor = math.pow(multiplier, owned)
    return {
        resource_key(resource): int(math.floor((amount or 0) * factor))
        for resource, amount in base_cost.items()
    }


def missing_for(cost: Mapping[str, int], available: Mapping[str, int]) -> Dict[str, int]:
    """Return the shortfall per resource, empty when ``cost`` is affordable."""

    shortfall: Dict[str, int] = {}
    for resource, required in cost.items():
        have = int(available.get(resource, 0))
        if have < required:
            shortfall[resource] = required - have
    return shortfall
