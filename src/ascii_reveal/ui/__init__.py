"""Web UI."""

from ascii_reveal.ui.app import create_app

__all__ = ["create_app"]
