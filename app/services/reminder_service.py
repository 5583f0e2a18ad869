"""
Reminder Service
Weekly progress reminders stored per phone number. Delivery (WhatsApp/SMS)
happens outside this service; rows stay unsent until a sender marks them.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reminder import Reminder
from app.utils.logger import logger


def _task_text(task: Any) -> str:
    if isinstance(task, dict):
        return str(task.get("task", ""))
    return str(task)


def build_week_update_message(week_number: int, tasks: List[Any]) -> str:
    """ "Week 3 Update: task one, task two..." from the first two tasks"""
    preview = ", ".join(_task_text(t) for t in tasks[:2])
    return f"Week {week_number} Update: {preview}..."


def build_plan_week_message(week: Dict[str, Any]) -> str:
    return f"Week {week.get('week')} - {week.get('title', '')}: {week.get('milestone', '')}"


async def create_reminder(
    db: AsyncSession,
    phone_number: str,
    week_number: int,
    tasks: List[Any],
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Reminder:
    """One reminder scheduled week_number weeks from now"""
    now = now or datetime.utcnow()
    reminder = Reminder(
        phone_number=phone_number,
        user_id=user_id,
        week_number=week_number,
        tasks=tasks,
        message=build_week_update_message(week_number, tasks),
        scheduled_for=now + timedelta(weeks=week_number),
        sent=False,
    )
    db.add(reminder)
    await db.commit()
    await db.refresh(reminder)
    logger.info(f"[Reminders] Created week {week_number} reminder", extra={"count": 1})
    return reminder


async def schedule_plan_reminders(
    db: AsyncSession,
    phone_number: str,
    action_plan: Dict[str, Any],
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Reminder]:
    """
    One reminder per plan week. The i-th listed week (0-based) is due i+1
    weeks from now regardless of its own week number.
    """
    now = now or datetime.utcnow()
    weeks = action_plan.get("weeks") or []

    reminders = []
    for index, week in enumerate(weeks):
        if not isinstance(week, dict):
            continue
        reminders.append(
            Reminder(
                phone_number=phone_number,
                user_id=user_id,
                week_number=week.get("week") if isinstance(week.get("week"), int) else index + 1,
                tasks=week.get("tasks") or [],
                message=build_plan_week_message(week),
                scheduled_for=now + timedelta(weeks=index + 1),
                sent=False,
            )
        )

    db.add_all(reminders)
    await db.commit()
    for reminder in reminders:
        await db.refresh(reminder)

    logger.info(
        f"[Reminders] Scheduled {len(reminders)} weekly reminders",
        extra={"count": len(reminders)},
    )
    return reminders


async def list_reminders(db: AsyncSession, phone_number: str) -> List[Reminder]:
    result = await db.execute(
        select(Reminder)
        .where(Reminder.phone_number == phone_number)
        .order_by(Reminder.scheduled_for.asc(), Reminder.id.asc())
    )
    return list(result.scalars().all())


def count_upcoming(reminders: List[Reminder]) -> int:
    return sum(1 for r in reminders if not r.sent)
