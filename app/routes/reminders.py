"""Weekly progress reminder routes"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.auth import get_current_user_optional
from app.models.user import User
from app.schemas.common import CamelModel
from app.services import reminder_service

router = APIRouter()


class ReminderCreate(CamelModel):
    phone_number: str = Field(..., min_length=1, max_length=32)
    week_number: int = Field(..., ge=1)
    tasks: List[Any]


class ReminderSchedule(CamelModel):
    phone_number: str = Field(..., min_length=1, max_length=32)
    action_plan: Dict[str, Any]


def _user_id(user: Optional[User]) -> Optional[str]:
    return user.supabase_id if user else None


@router.post("/create")
async def create_reminder(
    data: ReminderCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    reminder = await reminder_service.create_reminder(
        db, data.phone_number, data.week_number, data.tasks, user_id=_user_id(current_user)
    )
    return {"success": True, "reminder": reminder.to_dict()}


@router.get("/list")
async def list_reminders(
    phone_number: Optional[str] = Query(None, alias="phoneNumber"),
    db: AsyncSession = Depends(get_db),
):
    if not phone_number:
        raise HTTPException(status_code=400, detail="Phone number is required")

    reminders = await reminder_service.list_reminders(db, phone_number)
    return {
        "success": True,
        "reminders": [r.to_dict() for r in reminders],
        "count": len(reminders),
        "upcoming": reminder_service.count_upcoming(reminders),
    }


@router.post("/schedule")
async def schedule_reminders(
    data: ReminderSchedule,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """One reminder per plan week, starting one week from now"""
    if not isinstance(data.action_plan.get("weeks"), list):
        raise HTTPException(status_code=400, detail="Action plan has no weeks to schedule")

    reminders = await reminder_service.schedule_plan_reminders(
        db, data.phone_number, data.action_plan, user_id=_user_id(current_user)
    )
    return {
        "success": True,
        "reminders": [r.to_dict() for r in reminders],
        "count": len(reminders),
    }
