"""Command line interface for frontpack."""

from frontpack.cli.main import app

__all__ = ["app"]
