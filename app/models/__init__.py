# Database models package
from app.models.user import User
from app.models.action_plan import ActionPlan
from app.models.reminder import Reminder

__all__ = [
    "User",
    "ActionPlan",
    "Reminder",
]
