"""Narrow protocols for cross-module method calls.

These protocols define the minimal interfaces that engine modules need
from their peers, avoiding circular imports and direct coupling to
TruthLensApp.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Navigator(Protocol):
    """Whatever hosts the views: moves between routes and reloads everything."""

    def navigate(self, path: str) -> None: ...
    def reload(self) -> None: ...
