import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Mapping, Optional

from flask import Flask, current_app, jsonify, request

from api import ui_bridge
from core import config
from core.game_state import GameState
from core.scheduler import ensure_generation_loop

logger = logging.getLogger(__name__)

EXTENSION_KEY = "energy_clicker"


def _generate_request_metadata() -> tuple[str, str]:
    request_id = str(uuid.uuid4())
    server_time = datetime.now(timezone.utc).isoformat()
    return request_id, server_time


def _enrich_payload(payload: dict, request_id: str, server_time: str) -> dict:
    body = dict(payload or {})
    body["request_id"] = request_id
    body["server_time"] = server_time
    nested_state = body.get("state")
    if isinstance(nested_state, dict):
        nested_copy = dict(nested_state)
        nested_copy.setdefault("request_id", request_id)
        nested_copy.setdefault("server_time", server_time)
        body["state"] = nested_copy
    return body


def _json_response(payload: dict, status: Optional[int] = None):
    request_id, server_time = _generate_request_metadata()
    if status is None:
        status = int(payload.get("http_status", 200 if payload.get("ok", True) else 400))
    body = _enrich_payload(payload, request_id, server_time)
    response = jsonify(body)
    response.status_code = status
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _game_state() -> GameState:
    return current_app.extensions[EXTENSION_KEY]["state"]


def create_app(
    state: Optional[GameState] = None,
    *,
    start_generation: bool = True,
    config_overrides: Optional[Mapping[str, object]] = None,
) -> Flask:
    """Build the Flask app around ``state`` (a fresh store when omitted)."""

    app = Flask(__name__)
    app.config.update(TICK_INTERVAL_SECONDS=config.TICK_INTERVAL_SECONDS)
    if config_overrides:
        app.config.update(config_overrides)

    game_state = state if state is not None else GameState()
    generation_loop = None
    if start_generation:
        generation_loop = ensure_generation_loop(
            game_state, float(app.config["TICK_INTERVAL_SECONDS"])
        )
    app.extensions[EXTENSION_KEY] = {
        "state": game_state,
        "generation_loop": generation_loop,
    }

    @app.post("/api/init")
    def api_init():
        """Initialise the game state, optionally forcing a reset."""

        reset_flag = request.args.get("reset")
        if reset_flag is None:
            payload = request.get_json(silent=True) or {}
            reset_flag = payload.get("reset") or payload.get("force_reset")
        return _json_response(ui_bridge.init_game(_game_state(), reset_flag))

    @app.get("/api/state")
    def api_state():
        """Return the current snapshot of the game state."""

        return _json_response(ui_bridge.get_state(_game_state()))

    @app.get("/api/costs")
    def api_costs():
        return _json_response(ui_bridge.get_costs(_game_state()))

    @app.get("/api/costs/<resource>")
    def api_next_cost(resource: str):
        return _json_response(ui_bridge.next_cost(_game_state(), resource))

    @app.post("/api/generate")
    def api_generate():
        """Add energy for a click, or the ``amount`` given in the body."""

        payload = request.get_json(silent=True) or {}
        return _json_response(ui_bridge.generate_energy(_game_state(), payload.get("amount")))

    @app.post("/api/purchase/<resource>")
    def api_purchase(resource: str):
        state = _game_state()
        start = time.perf_counter()
        response = ui_bridge.purchase(state, resource)
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "Purchase handler route=/api/purchase/%s ok=%s purchased=%s duration_ms=%.2f",
            resource,
            response.get("ok"),
            response.get("purchased"),
            duration_ms,
        )
        return _json_response(response)

    return app


if __name__ == "__main__":
    create_app().run(debug=True, use_reloader=False)
