"""scenes/sandbox.py — Sandbox world setup shared by the window and headless runs.

Nothing here touches pygame, so ``main.py --headless`` and the tests
can build the same world the interactive scene shows.

    world = World()
    sandbox = build_sandbox(world)
    for _ in range(600):
        tick_systems(world, 1 / 60)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path

from core.data import DataLoader
from core.ecs import World
from core.events import EventBus, AgentSpoke
from components import (
    Position, PointOfInterest, Identity, Sprite, Navigator,
    GameClock, WorldState, GoapBrain, DevLog, Need,
)
from logic.goap.agent import spawn_goap_agent
from logic.tick import tick_systems
from scenes.overlay import overlay_lines


def default_path() -> Path:
    root = Path(__file__).resolve().parent.parent
    return root / "data" / "sandbox.toml"


@dataclass
class Sandbox:
    pois: dict[str, int] = field(default_factory=dict)    # name → eid
    agents: list[int] = field(default_factory=list)


def ensure_resources(world: World) -> None:
    """Create the shared resources a GOAP world needs, if missing."""
    if not world.res(GameClock):
        world.set_res(GameClock())
    if not world.res(WorldState):
        world.set_res(WorldState())
    if not world.res(EventBus):
        world.set_res(EventBus())
    if not world.res(DevLog):
        world.set_res(DevLog())


def build_sandbox(world: World, path: str | Path | None = None, *,
                  catalog_path: str | Path | None = None) -> Sandbox:
    ensure_resources(world)
    loader = DataLoader(world)
    loader.register("position", Position)
    loader.register("poi", PointOfInterest)
    loader.register("identity", Identity)
    loader.register("sprite", Sprite)
    loader.register("navigator", Navigator)

    sandbox = Sandbox()
    sandbox.pois = loader.load(default_path() if path is None else path)

    for entry in loader.records("agents"):
        needs = {Need(k): float(v) for k, v in entry.get("needs", {}).items()}
        eid = spawn_goap_agent(
            world, float(entry.get("x", 0.0)), float(entry.get("y", 0.0)),
            name=entry.get("name", ""),
            catalog_path=catalog_path,
            needs=needs or None,
            seed=entry.get("seed"),
        )
        sandbox.agents.append(eid)
    print(f"[SANDBOX] {len(sandbox.pois)} POIs, {len(sandbox.agents)} agents")
    return sandbox


# ── Debug manipulations (hotkeys) ────────────────────────────────────

def toggle_poi(world: World, eid: int) -> bool:
    """Flip a POI on/off.  Returns the new ``active`` value."""
    poi = world.get(eid, PointOfInterest)
    if poi is None:
        return False
    poi.active = not poi.active
    return poi.active


def spike_need(world: World, eid: int, need: Need, value: float = 0.95) -> None:
    brain = world.get(eid, GoapBrain)
    if brain is not None and brain.agent is not None:
        brain.agent.state.set_need(need, value)


def force_replan(world: World, eid: int) -> None:
    brain = world.get(eid, GoapBrain)
    if brain is not None and brain.agent is not None:
        brain.agent.force_replan()


def snapshot(world: World, eid: int) -> dict | None:
    brain = world.get(eid, GoapBrain)
    if brain is None or brain.agent is None:
        return None
    return brain.agent.snapshot()


# ── Headless runner ──────────────────────────────────────────────────

def run_headless(seconds: float = 60.0, dt: float = 1.0 / 30.0,
                 report_every: float = 10.0,
                 path: str | Path | None = None,
                 catalog_path: str | Path | None = None) -> World:
    """Simulate without a window, printing overlay dumps periodically."""
    world = World()
    sandbox = build_sandbox(world, path, catalog_path=catalog_path)

    def on_spoke(event: AgentSpoke) -> None:
        ident = world.get(event.eid, Identity)
        print(f"[SAY] {ident.name if ident else event.eid}: {event.text}")

    world.res(EventBus).subscribe("AgentSpoke", on_spoke)

    elapsed = 0.0
    next_report = 0.0
    devlog = world.res(DevLog)
    while elapsed < seconds:
        tick_systems(world, dt)
        elapsed += dt
        if elapsed >= next_report:
            next_report += report_every
            print(f"── t={elapsed:6.1f}s ──")
            for eid in sandbox.agents:
                snap = snapshot(world, eid)
                if snap is not None:
                    for line in overlay_lines(snap, devlog.for_eid(eid, 3)):
                        print("  " + line)
    return world
