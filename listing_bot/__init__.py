"""Telegram bot that announces newly listed zklighter assets."""

from .app import create_application

__all__ = ["create_application"]
