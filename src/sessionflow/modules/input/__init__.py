from .base import InputBackend, WindowBackend
from .desktop import DesktopInput
from .window import DesktopWindowBackend, PlaceholderWindowBackend, create_window_backend

__all__ = [
    "InputBackend",
    "WindowBackend",
    "DesktopInput",
    "DesktopWindowBackend",
    "PlaceholderWindowBackend",
    "create_window_backend",
]
