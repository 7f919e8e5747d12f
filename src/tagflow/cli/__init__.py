"""Command-line interface for tagflow."""

from __future__ import annotations

from tagflow.cli.app import cli, main

__all__ = ["cli", "main"]
