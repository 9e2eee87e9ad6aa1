"""
Input and window contracts used by the action executor.

Implementations raise ``InputError`` / ``WindowError`` on faults; a normal
return means the event was delivered.
"""
from __future__ import annotations

from typing import Protocol

from ..recognition.types import Point


class InputBackend(Protocol):
    def click_at(self, location: Point) -> None:
        ...

    def press_key(self, name: str) -> None:
        ...

    def send_text(self, text: str) -> None:
        ...


class WindowBackend(Protocol):
    def activate(self, title: str) -> bool:
        """Bring the window whose title contains ``title`` to the foreground."""
        ...

    def is_active(self, title: str) -> bool:
        """Whether the foreground window title contains ``title``."""
        ...


__all__ = ["InputBackend", "WindowBackend"]
