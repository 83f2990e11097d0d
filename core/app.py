"""
core/app.py — Pygame window for the sandbox

Owns the window, the frame loop, the scene stack and the shared ECS
world.  Window size, frame rate and the per-frame delta clamp come from
the ``[window]`` tuning section:

    app = App()
    app.push_scene(GoapScene())
    app.run()

Scenes draw onto a fixed-size canvas; the canvas is stretched to the
window, so layout constants in scenes stay in canvas pixels.
"""

from __future__ import annotations
import pygame
from core.scene import Scene
from core.ecs import World
from core.tuning import get as _tun

_FONT_SIZES = {"sm": 12, "md": 14, "lg": 20}


class App:
    def __init__(self, title: str = "GOAP Sandbox",
                 size: tuple[int, int] | None = None):
        pygame.init()
        w, h = size or (int(_tun("window", "width", 1100)),
                        int(_tun("window", "height", 680)))
        self.title = title
        self.canvas = pygame.Surface((w, h))
        self.screen = pygame.display.set_mode((w, h), pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.fps = int(_tun("window", "fps", 60))
        self.max_dt = float(_tun("window", "max_dt", 0.1))
        self.running = True

        self.world = World()
        self._scenes: list[Scene] = []
        self.fonts = {
            name: pygame.font.SysFont("monospace", px, bold=(name == "lg"))
            for name, px in _FONT_SIZES.items()
        }
        self._caption = ""

    # ── Scenes ───────────────────────────────────────────────────────

    @property
    def scene(self) -> Scene | None:
        return self._scenes[-1] if self._scenes else None

    def push_scene(self, scene: Scene) -> None:
        if self.scene:
            self.scene.on_exit(self)
        self._scenes.append(scene)
        scene.on_enter(self)

    def pop_scene(self) -> None:
        """Drop the top scene; the window closes when none are left."""
        if not self._scenes:
            return
        self._scenes.pop().on_exit(self)
        if self.scene:
            self.scene.on_enter(self)
        else:
            self.running = False

    def quit(self) -> None:
        while self._scenes:
            self._scenes.pop().on_exit(self)
        self.running = False

    # ── Loop ─────────────────────────────────────────────────────────

    def run(self) -> None:
        while self.running:
            dt = min(self.clock.tick(self.fps) / 1000.0, self.max_dt)
            for event in pygame.event.get():
                self._dispatch(event)
            scene = self.scene
            if scene is None:
                break
            scene.update(dt, self)
            scene.draw(self.canvas, self)
            self._present(scene)
        pygame.quit()

    def _dispatch(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
        elif event.type == pygame.VIDEORESIZE:
            self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
        elif self.scene:
            self.scene.handle_event(event, self)

    def _present(self, scene: Scene) -> None:
        pygame.transform.scale(self.canvas, self.screen.get_size(), self.screen)
        pygame.display.flip()
        status = scene.caption(self)
        caption = f"{self.title} · {status}" if status else self.title
        if caption != self._caption:
            pygame.display.set_caption(caption)
            self._caption = caption

    # ── Text ─────────────────────────────────────────────────────────

    def text(self, surface: pygame.Surface, text: str, pos: tuple[int, int], *,
             color=(255, 255, 255), size: str = "md", bg=None, pad: int = 3):
        """Blit one line of text at *pos*; *bg* (RGBA) draws a box behind it."""
        img = self.fonts[size].render(text, True, color)
        x, y = pos
        if bg is not None:
            w, h = img.get_size()
            box = pygame.Surface((w + pad * 2, h + pad * 2), pygame.SRCALPHA)
            box.fill(bg)
            surface.blit(box, (x - pad, y - pad))
        return surface.blit(img, (x, y))
