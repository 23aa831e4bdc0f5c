"""Flask control surface for players and the hunt operator."""

from __future__ import annotations

import atexit
import hmac
import logging
from functools import wraps
from threading import Lock
from typing import Any, Callable, Optional, TypeVar, cast

from flask import Flask, Response, jsonify, request

from narrator.speaker import build_narrator

from .choreographer import ConfirmationRequired, HuntSession
from .definition import load_definition
from .progress_store import open_progress_store
from .settings import HuntSettings, configure_logging

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def build_session(settings: HuntSettings) -> HuntSession:
    """Assemble a hunt session from configured definition, storage and narrator."""
    definition = load_definition(settings.definition_path)
    store = open_progress_store(settings.progress_path)
    narrator = build_narrator(settings.voice_pack)
    return HuntSession(definition, store, narrator)


def create_app(
    session: Optional[HuntSession] = None,
    *,
    settings: Optional[HuntSettings] = None,
) -> Flask:
    """Create the Flask app exposing the hunt control surface."""
    settings = settings or HuntSettings.from_env()
    hunt = session or build_session(settings)
    lock = Lock()

    app = Flask(__name__)
    app.extensions["hunt_session"] = hunt

    def operator_required(view: F) -> F:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _authorised(settings):
                return Response(
                    "Operator authentication required.",
                    status=401,
                    headers={"WWW-Authenticate": 'Basic realm="Hunt Operator"'},
                )
            return view(*args, **kwargs)

        return cast(F, wrapper)

    @app.before_request
    def _advance_clock() -> None:
        with lock:
            hunt.tick()

    @app.get("/api/step")
    def step_view() -> Response:
        with lock:
            return jsonify(hunt.current_step_view().snapshot())

    @app.get("/api/reveal")
    def reveal_view() -> Response:
        with lock:
            return jsonify(hunt.reveal_view())

    @app.post("/api/submit")
    def submit() -> tuple[Response, int]:
        payload = request.get_json(silent=True) or {}
        answer = payload.get("answer", "") if isinstance(payload, dict) else ""
        with lock:
            outcome = hunt.submit_answer(answer)
            body = {
                "outcome": outcome.value,
                "shake": hunt.shake_active,
                "reveal": hunt.reveal_view(),
                "step": hunt.current_step_view().snapshot(),
            }
        return jsonify(body), 200

    @app.post("/api/whisper")
    def whisper() -> Response:
        with lock:
            line = hunt.request_whisper()
        return jsonify({"ok": True, "spoken": line is not None})

    @app.post("/api/unlock-narration")
    def unlock_narration() -> Response:
        with lock:
            hunt.unlock_narration()
            unlocked = hunt.progress.narration_unlocked
        return jsonify({"ok": True, "narration_unlocked": unlocked})

    @app.post("/api/reveal/close")
    def close_reveal() -> Response:
        with lock:
            hunt.close_reveal()
            return jsonify({"ok": True, "reveal": hunt.reveal_view()})

    @app.get("/api/state")
    @operator_required
    def state() -> Response:
        with lock:
            return jsonify(hunt.snapshot())

    @app.post("/api/reset")
    @operator_required
    def reset() -> tuple[Response, int]:
        payload = request.get_json(silent=True) or {}
        try:
            with lock:
                hunt.reset(confirm=_confirmed(payload))
                snapshot = hunt.snapshot()
        except ConfirmationRequired as exc:
            return jsonify({"ok": False, "error": str(exc)}), 428
        return jsonify({"ok": True, "state": snapshot}), 200

    @app.post("/api/jump")
    @operator_required
    def jump() -> tuple[Response, int]:
        payload = request.get_json(silent=True) or {}
        index = payload.get("index") if isinstance(payload, dict) else None
        if isinstance(index, bool) or not isinstance(index, int):
            return jsonify({"ok": False, "error": "index must be an integer."}), 400
        try:
            with lock:
                hunt.jump_to(index, confirm=_confirmed(payload))
                snapshot = hunt.snapshot()
        except ConfirmationRequired as exc:
            return jsonify({"ok": False, "error": str(exc)}), 428
        return jsonify({"ok": True, "state": snapshot}), 200

    return app


def _confirmed(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("confirm") is True


def _authorised(settings: HuntSettings) -> bool:
    if not settings.admin_pass:
        LOGGER.warning("HUNT_ADMIN_PASS not set; operator routes are locked.")
        return False
    auth = request.authorization
    if auth is None or auth.username is None or auth.password is None:
        return False
    user_ok = hmac.compare_digest(auth.username.encode(), settings.admin_user.encode())
    pass_ok = hmac.compare_digest(auth.password.encode(), settings.admin_pass.encode())
    return user_ok and pass_ok


def main() -> None:
    settings = HuntSettings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings=settings)
    atexit.register(app.extensions["hunt_session"].dispose)
    app.run(host="0.0.0.0", port=8080)


__all__ = ["build_session", "create_app", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
