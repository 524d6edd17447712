"""Resource definitions for the energy clicker backend."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping


class Resource(str, Enum):
    """Enumeration of the canonical resource keys used in the game."""

    ENERGY = "energy"
    CAPACITORS = "capacitors"
    CIRCUITS = "circuits"


def resource_key(value: Resource | str) -> str:
    """Return the canonical string key for ``value``.

    Enum members map to their value. Any other string is accepted as-is
    (stripped and lower-cased) because the ledger is an open set of names.
    A :class:`ValueError` is raised for empty or non-string identifiers.
    """

    if isinstance(value, Resource):
        return value.value
    if not isinstance(value, str):
        raise ValueError(f"Resource identifier must be a string: {value!r}")
    key = value.strip().lower()
    if not key:
        raise ValueError("Resource identifier is empty")
    return key


def normalise_mapping(mapping: Mapping[Resource | str, float]) -> Dict[str, float]:
    """Return a new mapping with canonical string keys."""

    return {resource_key(key): amount for key, amount in mapping.items()}


__all__ = [
    "Resource",
    "normalise_mapping",
    "resource_key",
]
