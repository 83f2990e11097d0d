"""
core/scene.py — Scene base class

``App`` keeps a stack of scenes and only drives the top one.  A scene
overrides whichever hooks it needs; the defaults do nothing.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pygame
    from core.app import App


class Scene:
    def on_enter(self, app: App):
        """Became the top scene (pushed, or the one above was popped)."""

    def on_exit(self, app: App):
        """Stopped being the top scene."""

    def handle_event(self, event: pygame.event.Event, app: App):
        pass

    def update(self, dt: float, app: App):
        pass

    def draw(self, surface: pygame.Surface, app: App):
        pass

    def caption(self, app: App) -> str:
        """Short status appended to the window title ("" for none)."""
        return ""
