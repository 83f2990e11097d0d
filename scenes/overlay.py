"""scenes/overlay.py — Text for the GOAP debug overlay.

Pure formatting: takes an agent snapshot (``GoapAgent.snapshot()``)
and recent DevLog entries, returns lines.  The pygame scene draws
them; the headless runner prints them.
"""

from __future__ import annotations


def _bar(value: float, width: int = 10) -> str:
    filled = int(round(max(0.0, min(1.0, value)) * width))
    return "#" * filled + "." * (width - filled)


def overlay_lines(snap: dict, entries: list[dict] | None = None) -> list[str]:
    lines = [f"{snap['name']} (#{snap['eid']})"]

    goal = snap["goal"] or "-"
    lines.append(f"goal: {goal}  [{snap['goal_priority']:.2f}]")
    lines.append(f"action: {snap['action'] or '-'}")
    if snap["plan"]:
        lines.append(f"plan: {' > '.join(snap['plan'])}  "
                     f"({snap['remaining']} left, cost {snap['plan_cost']:g})")
    else:
        lines.append(f"plan: - ({snap['executor']})")
    if snap["last_failure"]:
        lines.append(f"last failure: {snap['last_failure']}")

    for key, value in snap["needs"].items():
        lines.append(f"  {key:<12} {_bar(value)} {value:.2f}")

    facts = [k for k, v in snap["facts"].items() if v]
    lines.append("facts: " + (", ".join(facts) if facts else "(none)"))
    if snap["effects"]:
        effects = ", ".join(
            name if remaining < 0 else f"{name} {remaining:.0f}s"
            for name, remaining in snap["effects"].items())
        lines.append("effects: " + effects)

    ranked = sorted(snap["priorities"].items(), key=lambda kv: -kv[1])
    lines.append("priorities: " + "  ".join(f"{g}={p:.2f}" for g, p in ranked))

    if snap["fallback_used"]:
        lines.append("! fallback catalog in use")
    for diag in snap["diagnostics"][:3]:
        lines.append(f"! {diag}")

    for e in entries or []:
        lines.append(f"  {e['t']:6.1f} [{e['cat']}] {e['msg']}")
    return lines
