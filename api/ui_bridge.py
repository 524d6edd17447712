"""Public API between the UI layer and the backend logic."""
from __future__ import annotations

from typing import Dict

from core.game_state import GameState, InvalidResourceError


# ---------------------------------------------------------------------------
# Response helpers


def _success_response(**payload: object) -> Dict[str, object]:
    response: Dict[str, object] = {"ok": True}
    response.update(payload)
    return response


def _error_response(
    code: str, message: str, *, http_status: int | None = None
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "ok": False,
        "error_code": code,
        "error_message": message,
        "error": message,
    }
    if http_status is not None:
        payload["http_status"] = int(http_status)
    return payload


def _should_reset(flag: object) -> bool:
    if flag is None:
        return True
    if isinstance(flag, str):
        return flag.strip().lower() not in {"0", "false", "no"}
    return bool(flag)


def _invalid_resource(state: GameState, exc: InvalidResourceError) -> Dict[str, object]:
    error = _error_response("invalid_resource", str(exc), http_status=404)
    error["resource"] = str(exc.resource)
    error["purchasable"] = sorted(state.base_costs)
    error.update(state.response_metadata())
    return error


# ---------------------------------------------------------------------------
# Initialisation and snapshots


def init_game(state: GameState, force_reset: object = None) -> Dict[str, object]:
    """Initialise or reset the game state using configuration defaults."""

    if _should_reset(force_reset):
        state.reset()
    return _success_response(**state.snapshot_state())


def get_state(state: GameState) -> Dict[str, object]:
    """Return a snapshot of the overall game state."""

    return _success_response(**state.snapshot_state())


def get_costs(state: GameState) -> Dict[str, object]:
    snapshot = state.snapshot_state()
    return _success_response(costs=snapshot["costs"], version=snapshot["version"])


def next_cost(state: GameState, resource: str) -> Dict[str, object]:
    """Return the next cost of ``resource`` and whether it is affordable now."""

    try:
        cost = state.next_cost(resource)
        affordable = state.can_afford(resource)
    except InvalidResourceError as exc:
        return _invalid_resource(state, exc)
    return _success_response(resource=resource, cost=cost, can_afford=affordable)


# ---------------------------------------------------------------------------
# Actions


def _parse_amount(amount: object) -> int | None:
    """Return ``amount`` as an int, or ``None`` when it is not a whole number."""

    if isinstance(amount, bool):
        return None
    if isinstance(amount, int):
        return amount
    if isinstance(amount, float) and amount.is_integer():
        return int(amount)
    return None


def generate_energy(state: GameState, amount: object = None) -> Dict[str, object]:
    """Add energy for a click, or ``amount`` when the caller provides one."""

    value = None
    if amount is not None:
        value = _parse_amount(amount)
        if value is None:
            return _error_response(
                "invalid_amount", f"Amount must be an integer: {amount!r}", http_status=400
            )
        if value < 0:
            return _error_response(
                "invalid_amount", f"Amount cannot be negative: {value}", http_status=400
            )

    gained = state.generate_energy(value)
    return _success_response(generated=gained, state=state.snapshot_state())


def purchase(state: GameState, resource: str) -> Dict[str, object]:
    """Buy one unit of ``resource``; unaffordable purchases are reported, not failed."""

    try:
        purchased, cost = state.try_purchase(resource)
    except InvalidResourceError as exc:
        return _invalid_resource(state, exc)

    payload: Dict[str, object] = {
        "resource": resource,
        "purchased": purchased,
        "state": state.snapshot_state(),
    }
    if purchased:
        payload["paid"] = cost
    else:
        payload["requires"] = cost
    return _success_response(**payload)
