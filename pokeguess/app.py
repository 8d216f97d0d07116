"""Backend API for the Pokémon silhouette guessing game."""
from __future__ import annotations

import os
import random
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from flask import Blueprint, Flask, current_app, jsonify, request, send_from_directory, session
from flask_cors import CORS

from pokeguess.catalog import Catalog, PokeApiClient
from pokeguess.game import (
    GameConfig,
    GameView,
    RoundController,
    RoundState,
    SkipDisabledError,
    clamp_generation,
    display_name,
)
from pokeguess.game_data import GENERATIONS, MAX_POKE_LIMIT, OUTCOME_UNRESOLVED, PHASE_FAILED
from pokeguess.settings import Settings

FRONTEND_DIR = Path(__file__).resolve().parent / "frontend"
EXTENSION_KEY = "pokeguess"

bp = Blueprint("game", __name__)


class SnapshotView(GameView):
    """Remembers the latest message and suggestions so responses can echo them."""

    def __init__(self) -> None:
        self.message = ""
        self.suggestions: List[str] = []

    def render_round(self, state: Optional[RoundState], score: int) -> None:
        self.suggestions = []

    def render_suggestions(self, names: Sequence[str]) -> None:
        self.suggestions = list(names)

    def render_message(self, text: str) -> None:
        self.message = text


class SessionStore:
    """One controller per browser session; the least recently used is evicted first."""

    def __init__(self, factory: Callable[[], RoundController], max_sessions: int = 1000) -> None:
        self.factory = factory
        self.max_sessions = max(1, max_sessions)
        self._controllers: "OrderedDict[str, RoundController]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> RoundController:
        with self._lock:
            controller = self._controllers.get(key)
            if controller is not None:
                self._controllers.move_to_end(key)
                return controller
            controller = self.factory()
            self._controllers[key] = controller
            while len(self._controllers) > self.max_sessions:
                self._controllers.popitem(last=False)
            return controller

    def __len__(self) -> int:
        return len(self._controllers)


@dataclass
class GameServices:
    settings: Settings
    client: PokeApiClient
    catalog: Catalog
    sessions: SessionStore


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[PokeApiClient] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], float]] = None,
    background_catalog: bool = True,
) -> Flask:
    settings = settings or Settings()
    app = Flask(__name__, static_folder=str(FRONTEND_DIR), static_url_path="")
    app.config["SECRET_KEY"] = settings.secret_key or os.urandom(24).hex()
    CORS(app)

    client = client or PokeApiClient(settings.api_base_url, settings.request_timeout)
    catalog = Catalog(client, settings.catalog_limit)

    def make_controller() -> RoundController:
        return RoundController(
            client,
            catalog,
            config=GameConfig(generation_limit=clamp_generation(settings.generation_limit())),
            view=SnapshotView(),
            rng=rng,
            clock=clock,
        )

    app.extensions[EXTENSION_KEY] = GameServices(
        settings=settings,
        client=client,
        catalog=catalog,
        sessions=SessionStore(make_controller, settings.max_sessions),
    )
    app.register_blueprint(bp)

    if background_catalog:
        catalog.start_background_load()
    elif not catalog.load():
        app.logger.warning("Starting without autocomplete: %s", catalog.error)
    return app


def _services() -> GameServices:
    return current_app.extensions[EXTENSION_KEY]


def _controller() -> RoundController:
    sid = session.get("sid")
    if not sid:
        sid = uuid.uuid4().hex
        session["sid"] = sid
    return _services().sessions.get(sid)


def snapshot(controller: RoundController, catalog: Catalog) -> Dict[str, Any]:
    state = controller.state
    revealed = state is not None and state.revealed
    message = getattr(controller.view, "message", "") or catalog.message()
    return {
        "score": controller.score,
        "tries_left": state.tries_left if state is not None else controller.max_tries,
        "max_tries": controller.max_tries,
        "phase": controller.phase,
        "outcome": state.outcome if state is not None else OUTCOME_UNRESOLVED,
        "revealed": revealed,
        "input_enabled": state is not None and state.accepting_guesses,
        "can_skip": controller.can_skip,
        "artwork": state.artwork if state is not None else None,
        "name": display_name(state.target_name) if revealed else None,
        "message": message,
        "generation_limit": controller.config.generation_limit,
        "daily": controller.config.daily,
        "catalog": catalog.status(),
    }


def _respond(controller: RoundController, status: str = "success", code: int = 200):
    payload = snapshot(controller, _services().catalog)
    payload["status"] = status
    return jsonify(payload), code


def _error(message: str, code: int):
    return jsonify({"status": "error", "message": message}), code


@bp.route("/api/game/new", methods=["POST"])
def new_game():
    """Start a new round (the daily puzzle when daily mode is on)."""
    controller = _controller()
    state = controller.start()
    if state.phase == PHASE_FAILED:
        current_app.logger.warning("Round %d could not load #%d", state.generation, state.target_id)
        return _respond(controller, status="error", code=502)
    return _respond(controller)


@bp.route("/api/game/next", methods=["POST"])
def next_round():
    """Skip to another random round."""
    controller = _controller()
    try:
        state = controller.next_round()
    except SkipDisabledError as exc:
        return _error(str(exc), 409)
    if state.phase == PHASE_FAILED:
        return _respond(controller, status="error", code=502)
    return _respond(controller)


@bp.route("/api/game/state", methods=["GET"])
def get_state():
    """Get current round state."""
    return _respond(_controller())


@bp.route("/api/game/guess", methods=["POST"])
def guess():
    """Submit a guess for the current round."""
    data = request.get_json(silent=True) or {}
    text = data.get("guess")

    if not isinstance(text, str) or not text.strip():
        return _error("guess required", 400)

    controller = _controller()
    controller.submit_guess(text.strip())
    return _respond(controller)


@bp.route("/api/game/reveal", methods=["POST"])
def reveal():
    """Give up and reveal the current Pokémon."""
    controller = _controller()
    controller.force_reveal()
    return _respond(controller)


@bp.route("/api/game/suggestions", methods=["GET"])
def suggestions():
    """Autocomplete names for the partial guess in ``q``."""
    names = _controller().get_suggestions(request.args.get("q", ""))
    return jsonify({"suggestions": [{"name": name, "label": display_name(name)} for name in names]})


@bp.route("/api/game/settings", methods=["GET"])
def get_settings():
    """Get the generation limit, daily flag and the selectable generations."""
    controller = _controller()
    return jsonify({
        "generation_limit": controller.config.generation_limit,
        "daily": controller.config.daily,
        "max_limit": MAX_POKE_LIMIT,
        "generations": GENERATIONS,
    })


@bp.route("/api/game/settings", methods=["POST"])
def update_settings():
    """Change generation limit and/or daily mode, then start a fresh round."""
    data = request.get_json(silent=True) or {}
    limit = data.get("generation_limit")
    daily = data.get("daily")

    if limit is None and daily is None:
        return _error("generation_limit or daily required", 400)
    if daily is not None and not isinstance(daily, bool):
        return _error("daily must be a boolean", 400)

    controller = _controller()
    state = controller.configure(generation_limit=limit, daily=daily)
    if state.phase == PHASE_FAILED:
        return _respond(controller, status="error", code=502)
    return _respond(controller)


@bp.route("/api/catalog", methods=["GET"])
def catalog_status():
    """Report whether autocomplete names are available."""
    return jsonify(_services().catalog.status())


@bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "service": "pokeguess"})


@bp.route("/", methods=["GET"])
def frontend_index():
    """Serve the game frontend."""
    return send_from_directory(FRONTEND_DIR, "index.html")


if __name__ == "__main__":
    create_app().run(debug=True, port=5001)
