"""CLI module for mapmark.

Provides the command-line interface for canonicalizing point ids and
checking exported JSON files.
"""

from __future__ import annotations

from mapmark.cli.main import app

__all__ = ["app"]
