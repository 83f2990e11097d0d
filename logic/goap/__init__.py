"""logic.goap — Goal-oriented action planning.

Modules
-------
actions   Action contract + built-in actions
goals     Goal contract + built-in goals
planner   Plan, Planner, is_plan_valid
executor  Executor (per-plan state machine)
agent     GoapAgent arbitration loop, goap_system, spawn_goap_agent
catalog   TOML catalogs, kind registry, fallback, validation
"""

from logic.goap.actions import Action, ActionResult
from logic.goap.goals import Goal
from logic.goap.planner import Plan, Planner, is_plan_valid
from logic.goap.executor import Executor, ExecState
from logic.goap.catalog import (
    Catalog, AgentContext, load_catalog, build_catalog, standard_catalog,
    fallback_catalog, validate_catalog, register_goal_kind, register_action_kind,
)
from logic.goap.agent import GoapAgent, goap_system, spawn_goap_agent
