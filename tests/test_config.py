from __future__ import annotations

import pytest

from chesscore import AILevel, Color
from chesscore.config import Settings, load_settings


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.ai_level is AILevel.INTERMEDIATE
    assert settings.ai_color is Color.BLACK
    assert settings.search_depth == 3
    assert settings.seed is None


def test_environment_overrides():
    settings = load_settings(
        {
            "CHESS_AI_LEVEL": "advanced",
            "CHESS_AI_COLOR": "White",
            "CHESS_SEARCH_DEPTH": "2",
            "CHESS_SEED": "99",
            "CHESS_PORT": "8080",
            "CHESS_LOG_LEVEL": "debug",
        }
    )
    assert settings.ai_level is AILevel.ADVANCED
    assert settings.ai_color is Color.WHITE
    assert settings.search_depth == 2
    assert settings.seed == 99
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"CHESS_AI_LEVEL": "grandmaster"},
        {"CHESS_AI_COLOR": "green"},
        {"CHESS_SEARCH_DEPTH": "deep"},
        {"CHESS_SEARCH_DEPTH": "0"},
        {"CHESS_PORT": "http"},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ValueError):
        load_settings(env)
