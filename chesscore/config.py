"""
Configuration for the chess engine and its web adapter.

- Settings come from environment variables; unset ones fall back to defaults.
- load_settings() reads them on demand; nothing is loaded at import time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import logging
import os

from .ai import SEARCH_DEPTH, AILevel
from .board import Color


def _get(env: Mapping[str, str], name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw) if cast else raw
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r} ({exc})") from None


def _color(text: str) -> Color:
    return Color(text.strip().lower())


@dataclass(frozen=True)
class Settings:
    # Computer opponent
    ai_level: AILevel = AILevel.INTERMEDIATE
    ai_color: Color = Color.BLACK
    search_depth: int = SEARCH_DEPTH
    seed: Optional[int] = None

    # Web adapter
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    defaults = Settings()
    settings = Settings(
        ai_level=_get(env, "CHESS_AI_LEVEL", defaults.ai_level, cast=AILevel.parse),
        ai_color=_get(env, "CHESS_AI_COLOR", defaults.ai_color, cast=_color),
        search_depth=_get(env, "CHESS_SEARCH_DEPTH", defaults.search_depth, cast=int),
        seed=_get(env, "CHESS_SEED", defaults.seed, cast=int),
        host=_get(env, "CHESS_HOST", defaults.host),
        port=_get(env, "CHESS_PORT", defaults.port, cast=int),
        log_level=str(_get(env, "CHESS_LOG_LEVEL", defaults.log_level)).upper(),
    )
    if settings.search_depth < 1:
        raise ValueError(f"Invalid value for CHESS_SEARCH_DEPTH: {settings.search_depth}")
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
