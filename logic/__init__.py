"""logic — Simulation systems package.

Subpackages
-----------
goap/       — actions, goals, planner, executor, arbitration loop, catalogs

Top-level modules
-----------------
tick        — per-frame system orchestrator
movement    — steering, integration and the ``NavHandle`` movement handle
perception  — ``PoiLocator`` point-of-interest lookup
"""
