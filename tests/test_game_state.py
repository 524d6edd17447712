import math
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from core import config
from core.game_state import GameState, InvalidResourceError
from core.resources import Resource


@pytest.fixture()
def state():
    return GameState()


def test_starting_values(state):
    assert state.resources_snapshot() == {"energy": 0, "capacitors": 1, "circuits": 0}
    assert state.cost_multiplier == pytest.approx(1.35)
    assert state.energy == 0
    assert state.energy_per_click == 1
    assert state.energy_per_second == 0


def test_first_capacitor_scenario(state):
    assert state.next_cost("capacitors") == {"energy": 13}
    assert state.can_afford("capacitors") is False
    assert state.purchase("capacitors") is False
    assert state.resources_snapshot() == {"energy": 0, "capacitors": 1, "circuits": 0}

    state.ledger.set_amount(Resource.ENERGY, 13)
    assert state.can_afford_capacitor is True
    assert state.purchase("capacitors") is True
    assert state.energy == 0
    assert state.get_amount("capacitors") == 2


def test_circuit_cost_uses_base_cost_at_zero_owned(state):
    assert state.next_cost(Resource.CIRCUITS) == {"energy": 25, "capacitors": 10}
    assert state.next_circuit_cost == {"energy": 25, "capacitors": 10}


@pytest.mark.parametrize("resource", ["energy", "widgets", "", None])
def test_next_cost_rejects_non_purchasable(state, resource):
    with pytest.raises(InvalidResourceError):
        state.next_cost(resource)
    with pytest.raises(InvalidResourceError):
        state.can_afford(resource)
    with pytest.raises(InvalidResourceError):
        state.purchase(resource)


def test_resource_names_are_case_insensitive(state):
    assert state.next_cost(" Capacitors ") == state.next_cost(Resource.CAPACITORS)


@pytest.mark.parametrize("owned", [0, 1, 2, 5, 10, 17])
def test_next_cost_follows_geometric_formula(owned):
    state = GameState(starting_resources={"energy": 0, "capacitors": owned, "circuits": owned})
    for resource, base in config.BASE_COSTS.items():
        expected = {
            key: math.floor(amount * 1.35 ** owned) for key, amount in base.items()
        }
        assert state.next_cost(resource) == expected


def test_each_unit_costs_more_than_the_last(state):
    state.ledger.set_amount(Resource.ENERGY, 10_000)
    costs = []
    for _ in range(6):
        costs.append(state.next_capacitor_cost["energy"])
        assert state.add_capacitor() is True
    assert costs == sorted(costs)
    assert len(set(costs)) == len(costs)


def test_can_afford_matches_ledger_for_random_states():
    rng = random.Random(1234)
    for _ in range(200):
        multiplier = rng.uniform(1.01, 2.5)
        base_costs = {
            "capacitors": {"energy": rng.randint(0, 50)},
            "circuits": {"energy": rng.randint(0, 80), "capacitors": rng.randint(0, 15)},
        }
        starting = {
            "energy": rng.randint(0, 400),
            "capacitors": rng.randint(0, 12),
            "circuits": rng.randint(0, 6),
        }
        state = GameState(starting, multiplier, base_costs)
        for resource in base_costs:
            cost = state.next_cost(resource)
            expected = all(starting.get(key, 0) >= amount for key, amount in cost.items())
            assert state.can_afford(resource) is expected
            # lookahead never mutates
            assert state.resources_snapshot() == starting


def test_purchase_debits_exact_cost_for_random_states():
    rng = random.Random(99)
    for _ in range(200):
        starting = {
            "energy": rng.randint(0, 200),
            "capacitors": rng.randint(0, 20),
            "circuits": rng.randint(0, 4),
        }
        state = GameState(starting_resources=starting)
        resource = rng.choice(["capacitors", "circuits"])
        before = state.resources_snapshot()
        cost = state.next_cost(resource)
        affordable = state.can_afford(resource)

        assert state.purchase(resource) is affordable
        after = state.resources_snapshot()
        if not affordable:
            assert after == before
            continue
        for key in before:
            expected = before[key] - cost.get(key, 0)
            if key == resource:
                expected += 1
            assert after[key] == expected
            assert after[key] >= 0


def test_circuit_purchase_spends_energy_and_capacitors(state):
    state.ledger.set_amount(Resource.ENERGY, 30)
    state.ledger.set_amount(Resource.CAPACITORS, 12)
    assert state.add_circuit() is True
    assert state.resources_snapshot() == {"energy": 5, "capacitors": 2, "circuits": 1}
    assert state.energy_per_click == 2
    assert state.energy_per_second == 1


def test_try_purchase_reports_checked_cost(state):
    purchased, cost = state.try_purchase("circuits")
    assert purchased is False
    assert cost == {"energy": 25, "capacitors": 10}


def test_sparse_costs_treat_missing_ledger_entries_as_zero():
    state = GameState(
        starting_resources={"energy": 100, "capacitors": 0, "circuits": 0},
        base_costs={"capacitors": {"energy": 5, "quarks": 0}},
    )
    assert state.next_cost("capacitors") == {"energy": 5, "quarks": 0}
    assert state.can_afford("capacitors") is True
    assert state.purchase("capacitors") is True
    assert state.get_amount("quarks") == 0


def test_generate_energy_defaults_to_capacitor_count(state):
    state.ledger.set_amount(Resource.CAPACITORS, 4)
    assert state.generate_energy() == 4
    assert state.energy == 4


def test_generate_energy_with_amount_ignores_capacitors(state):
    state.ledger.set_amount(Resource.CAPACITORS, 4)
    assert state.generate_energy(5) == 5
    assert state.energy == 5


def test_generate_energy_zero_adds_nothing(state):
    version = state.version
    assert state.generate_energy(0) == 0
    assert state.energy == 0
    assert state.version == version


def test_mutations_bump_version(state):
    assert state.version == 0
    state.generate_energy()
    assert state.version == 1
    state.purchase("capacitors")
    assert state.version == 1
    state.generate_energy(20)
    state.purchase("capacitors")
    assert state.version == 3


def test_reset_restores_starting_values(state):
    state.generate_energy(100)
    state.purchase("capacitors")
    state.reset()
    assert state.resources_snapshot() == config.STARTING_RESOURCES
    assert state.version == 0


def test_snapshot_state_lists_costs(state):
    snapshot = state.snapshot_state()
    assert snapshot["energy"] == 0
    assert snapshot["energy_per_click"] == 1
    assert snapshot["energy_per_second"] == 0
    assert snapshot["costs"]["capacitors"] == {
        "cost": {"energy": 13},
        "can_afford": False,
        "owned": 1,
    }
    assert snapshot["costs"]["circuits"]["cost"] == {"energy": 25, "capacitors": 10}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"cost_multiplier": 1.0},
        {"cost_multiplier": 0.5},
        {"base_costs": {"energy": {"capacitors": 1}}},
        {"base_costs": {"lasers": {"energy": 1}}},
        {"base_costs": {"capacitors": {"energy": -1}}},
        {"starting_resources": {"energy": -5, "capacitors": 1, "circuits": 0}},
    ],
)
def test_invalid_rules_are_rejected(kwargs):
    with pytest.raises(config.InvalidConfigurationError):
        GameState(**kwargs)


def test_generate_energy_reports_clamped_change(state):
    state.generate_energy(3)
    assert state.generate_energy(-5) == -3
    assert state.energy == 0
    assert state.generate_energy(-5) == 0
