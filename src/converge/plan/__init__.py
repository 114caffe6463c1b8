from .models import ActionType, Plan, PlannedAction
from .engine import plan, plan_destroy

__all__ = ["ActionType", "Plan", "PlannedAction", "plan", "plan_destroy"]
