from __future__ import annotations

from threading import RLock
from typing import Optional

import random

from flask import Flask, jsonify, request

from chesscore import AILevel, Color, GameEngine
from chesscore.config import Settings, configure_logging, load_settings


def create_app(settings: Optional[Settings] = None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)

    rng = random.Random(settings.seed)
    game = GameEngine(
        ai_level=settings.ai_level,
        ai_color=settings.ai_color,
        rng=rng,
        search_depth=settings.search_depth,
    )
    # Legality checks apply and undo moves on the live board, so requests
    # touching the game take turns.
    lock = RLock()

    def _respond(ai_move=None):
        snap = game.snapshot()
        snap["ai_move"] = ai_move.uci() if ai_move else None
        return jsonify(snap)

    def _error(message: str):
        return jsonify({"error": message}), 400

    def _payload():
        data = request.get_json(silent=True)
        if data is None:
            return {}
        return data if isinstance(data, dict) else None

    @app.post("/api/new")
    def api_new():
        nonlocal game
        data = _payload()
        if data is None:
            return _error("Expected a JSON object")
        try:
            level = AILevel.parse(data.get("ai_level", settings.ai_level))
            color = Color(str(data.get("ai_color", settings.ai_color.value)).lower())
            options = dict(ai_level=level, ai_color=color, rng=rng, search_depth=settings.search_depth)
            fen = data.get("fen")
            new_game = GameEngine.from_fen(fen, **options) if fen else GameEngine(**options)
        except ValueError as exc:
            return _error(str(exc))

        with lock:
            game = new_game
            # If the AI owns White it makes the first move immediately
            ai_move = game.trigger_ai_move_if_due()
            return _respond(ai_move)

    @app.get("/api/state")
    def api_state():
        with lock:
            return _respond()

    @app.post("/api/move")
    def api_move():
        payload = _payload()
        if payload is None:
            return _error("Expected a JSON object")
        uci = payload.get("move")
        if not uci:
            return _error("Missing move")

        with lock:
            if game.is_game_over():
                return _error("Game is over")
            try:
                move = game.move_from_uci(str(uci))
            except ValueError as exc:
                return _error(str(exc))

            if not game.make_player_move(move):
                return _error(f"Illegal move: {uci}")

            ai_move = None
            if not game.is_game_over():
                ai_move = game.trigger_ai_move_if_due()
            return _respond(ai_move)

    @app.post("/api/resign")
    def api_resign():
        payload = _payload()
        if payload is None:
            return _error("Expected a JSON object")
        with lock:
            if game.is_game_over():
                return _error("Game is over")
            try:
                if "color" in payload:
                    color = Color(str(payload["color"]).lower())
                elif game.ai_color is not None:
                    color = game.ai_color.opposite()
                else:
                    color = game.current_turn
            except ValueError as exc:
                return _error(str(exc))
            game.resign(color)
            return _respond()

    return app


if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings.log_level)
    create_app(settings).run(host=settings.host, port=settings.port)
