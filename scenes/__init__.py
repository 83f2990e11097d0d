"""scenes — Sandbox presentation.

sandbox     world setup, debug manipulations, headless runner (no pygame)
overlay     overlay text from agent snapshots (no pygame)
goap_scene  interactive pygame scene
"""
