"""Flask JSON adapter over chesscore.GameEngine."""

from .app import create_app

__all__ = ["create_app"]
