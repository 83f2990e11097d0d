"""scenes/goap_scene.py — Interactive GOAP sandbox.

Shows the POIs and agents from ``data/sandbox.toml``, speech bubbles,
each agent's current destination, and the debug overlay for the
selected agent.  The overlay only reads agent snapshots.

Keys
----
Tab         select next agent
1-4         toggle food / water / bed / toy POI (resource vanishing)
H T S P     spike hunger / thirst / sleep / play on the selected agent
R           force replan on the selected agent
B           clear has_barked / communicated (lets agents bark again)
N           toggle day_time
Space       pause
F4          reload tuning
Esc         quit
"""

from __future__ import annotations
import math
import pygame

from core.app import App
from core.scene import Scene
from core.events import EventBus, AgentSpoke
from core import tuning as _tun_mod
from components import (
    Position, Sprite, Facing, Navigator, PointOfInterest, Identity,
    GameClock, WorldState, DevLog, Need, Fact,
)
from logic.tick import tick_systems
from scenes.overlay import overlay_lines
from scenes import sandbox as sb


PIXELS_PER_M = 26
MAP_ORIGIN = (20, 20)
PANEL_X = 700

_NEED_KEYS = {
    pygame.K_h: Need.HUNGER,
    pygame.K_t: Need.THIRST,
    pygame.K_s: Need.SLEEP,
    pygame.K_p: Need.PLAY,
}
_POI_KEYS = {
    pygame.K_1: "food",
    pygame.K_2: "water",
    pygame.K_3: "bed",
    pygame.K_4: "toy",
}


class GoapScene(Scene):
    def __init__(self, path=None, catalog_path=None):
        self.path = path
        self.catalog_path = catalog_path
        self.sandbox: sb.Sandbox | None = None
        self.selected = 0
        self.bubbles: dict[int, tuple[str, float]] = {}

    # ── Lifecycle ────────────────────────────────────────────────────

    def on_enter(self, app: App):
        if self.sandbox is not None:
            return
        self.sandbox = sb.build_sandbox(app.world, self.path,
                                        catalog_path=self.catalog_path)
        app.world.res(EventBus).subscribe("AgentSpoke", self._on_spoke)

    def _on_spoke(self, event: AgentSpoke):
        self.bubbles[event.eid] = (event.text, event.duration)

    @property
    def selected_eid(self) -> int | None:
        if not self.sandbox or not self.sandbox.agents:
            return None
        return self.sandbox.agents[self.selected % len(self.sandbox.agents)]

    # ── Input ────────────────────────────────────────────────────────

    def handle_event(self, event: pygame.event.Event, app: App):
        if event.type != pygame.KEYDOWN:
            return
        world = app.world
        eid = self.selected_eid

        if event.key == pygame.K_ESCAPE:
            app.quit()
        elif event.key == pygame.K_TAB:
            self.selected += 1
        elif event.key == pygame.K_SPACE:
            clock = world.res(GameClock)
            clock.paused = not clock.paused
        elif event.key == pygame.K_F4:
            _tun_mod.reload()
        elif event.key in _POI_KEYS:
            kind = _POI_KEYS[event.key]
            for poi_eid, poi in world.all_of(PointOfInterest):
                if poi.kind == kind:
                    active = sb.toggle_poi(world, poi_eid)
                    print(f"[SANDBOX] {kind} POI #{poi_eid} {'on' if active else 'off'}")
        elif event.key in _NEED_KEYS and eid is not None:
            sb.spike_need(world, eid, _NEED_KEYS[event.key])
        elif event.key == pygame.K_r and eid is not None:
            sb.force_replan(world, eid)
        elif event.key == pygame.K_b:
            facts = world.res(WorldState)
            facts.set_fact(Fact.HAS_BARKED, False)
            facts.set_fact(Fact.COMMUNICATED, False)
        elif event.key == pygame.K_n:
            facts = world.res(WorldState)
            facts.set_fact(Fact.DAY_TIME, not facts.get_fact(Fact.DAY_TIME))

    # ── Update ───────────────────────────────────────────────────────

    def update(self, dt: float, app: App):
        sim_dt = tick_systems(app.world, dt)
        for eid in list(self.bubbles):
            text, left = self.bubbles[eid]
            left -= sim_dt
            if left <= 0:
                del self.bubbles[eid]
            else:
                self.bubbles[eid] = (text, left)

    def caption(self, app: App) -> str:
        clock = app.world.res(GameClock)
        eid = self.selected_eid
        ident = app.world.get(eid, Identity) if eid is not None else None
        who = ident.name if ident else "no agent"
        return f"{who} · {'paused' if clock.paused else f'{clock.time:.0f}s'}"

    # ── Draw ─────────────────────────────────────────────────────────

    def draw(self, surface: pygame.Surface, app: App):
        world = app.world
        day = world.res(WorldState).get_fact(Fact.DAY_TIME)
        surface.fill((34, 38, 44) if day else (16, 18, 28))
        pygame.draw.rect(surface, (60, 66, 74),
                         (MAP_ORIGIN[0] - 4, MAP_ORIGIN[1] - 4,
                          PANEL_X - MAP_ORIGIN[0] - 12, surface.get_height() - 32), 1)

        for eid, pos, poi in world.query(Position, PointOfInterest):
            self._draw_poi(surface, app, eid, pos, poi)
        for eid, pos, sprite in world.query(Position, Sprite):
            if world.has(eid, PointOfInterest):
                continue
            self._draw_agent(surface, app, eid, pos, sprite)

        self._draw_panel(surface, app)

    def _to_screen(self, x: float, y: float) -> tuple[int, int]:
        return (MAP_ORIGIN[0] + int(x * PIXELS_PER_M),
                MAP_ORIGIN[1] + int(y * PIXELS_PER_M))

    def _draw_poi(self, surface, app, eid, pos, poi):
        sprite = app.world.get(eid, Sprite) or Sprite()
        sx, sy = self._to_screen(pos.x, pos.y)
        color = sprite.color if poi.active else (70, 70, 70)
        radius = max(6, int(sprite.radius * PIXELS_PER_M))
        pygame.draw.circle(surface, color, (sx, sy), radius, 2)
        app.text(surface, sprite.char, (sx - 5, sy - 9), color=color, size="lg")
        ident = app.world.get(eid, Identity)
        label = ident.name if ident else poi.kind
        if not poi.active:
            label += " (off)"
        app.text(surface, label, (sx - radius, sy + radius + 2),
                 color=(150, 150, 150), size="sm")

    def _draw_agent(self, surface, app, eid, pos, sprite):
        world = app.world
        sx, sy = self._to_screen(pos.x, pos.y)
        nav = world.get(eid, Navigator)
        if nav is not None and nav.has_destination:
            pygame.draw.line(surface, (90, 90, 110), (sx, sy),
                             self._to_screen(nav.dest_x, nav.dest_y), 1)

        selected = eid == self.selected_eid
        radius = max(6, int(sprite.radius * PIXELS_PER_M))
        pygame.draw.circle(surface, sprite.color, (sx, sy), radius)
        if selected:
            pygame.draw.circle(surface, (255, 255, 255), (sx, sy), radius + 3, 1)
        facing = world.get(eid, Facing)
        if facing is not None:
            tip = (sx + int(math.cos(facing.angle) * (radius + 6)),
                   sy + int(math.sin(facing.angle) * (radius + 6)))
            pygame.draw.line(surface, (255, 255, 255), (sx, sy), tip, 2)

        ident = world.get(eid, Identity)
        snap = sb.snapshot(world, eid)
        tag = ident.name if ident else f"#{eid}"
        if snap and snap["goal"]:
            tag += f" · {snap['goal']}"
        app.text(surface, tag, (sx - radius, sy + radius + 2),
                 color=(220, 220, 220), size="sm")

        bubble = self.bubbles.get(eid)
        if bubble is not None:
            app.text(surface, bubble[0], (sx - radius, sy - radius - 22),
                     color=(20, 20, 20), bg=(240, 240, 230, 220), size="sm")

    def _draw_panel(self, surface, app):
        world = app.world
        eid = self.selected_eid
        y = 14
        clock = world.res(GameClock)
        status = "PAUSED" if clock.paused else f"t={clock.time:6.1f}s"
        app.text(surface, f"GOAP sandbox  {status}", (PANEL_X, y),
                 color=(255, 220, 120))
        y += 22
        if eid is None:
            return
        snap = sb.snapshot(world, eid)
        if snap is None:
            return
        devlog = world.res(DevLog)
        entries = devlog.for_eid(eid, 8) if devlog else []
        for line in overlay_lines(snap, entries):
            color = (255, 120, 120) if line.startswith("!") else (210, 210, 210)
            app.text(surface, line[:56], (PANEL_X, y), color=color, size="sm")
            y += 15
        y += 8
        app.text(surface, "Tab agent  1-4 POIs  HTSP needs  R replan",
                 (PANEL_X, y), color=(120, 120, 140), size="sm")
        app.text(surface, "B bark reset  N day/night  Space pause",
                 (PANEL_X, y + 15), color=(120, 120, 140), size="sm")
