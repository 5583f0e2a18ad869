from datetime import datetime, timedelta

from app.models.reminder import Reminder
from app.services import reminder_service

PHONE = "+56912345678"

PLAN = {
    "weeks": [
        {"week": 1, "title": "Fundamentos", "milestone": "Entorno listo", "tasks": [{"task": "Instalar Python"}]},
        {"week": 2, "title": "Primer proyecto", "milestone": "Web publicada", "tasks": []},
        {"week": 3, "title": "Comunidad", "milestone": "Meetup asistido", "tasks": []},
    ]
}


def _weeks_from_now(iso: str) -> float:
    return (datetime.fromisoformat(iso) - datetime.utcnow()) / timedelta(weeks=1)


def test_week_update_message_uses_first_two_tasks():
    tasks = [{"task": "Leer"}, {"task": "Practicar"}, {"task": "Descansar"}]

    assert reminder_service.build_week_update_message(3, tasks) == "Week 3 Update: Leer, Practicar..."


def test_create_reminder(client):
    resp = client.post(
        "/api/reminders/create",
        json={"phoneNumber": PHONE, "weekNumber": 2, "tasks": [{"task": "Curso"}, {"task": "Proyecto"}]},
    )

    assert resp.status_code == 200
    reminder = resp.json()["reminder"]
    assert reminder["message"] == "Week 2 Update: Curso, Proyecto..."
    assert reminder["sent"] is False
    assert abs(_weeks_from_now(reminder["scheduledFor"]) - 2) < 0.01


def test_create_reminder_missing_fields_is_400(client):
    resp = client.post("/api/reminders/create", json={"phoneNumber": PHONE})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_schedule_one_reminder_per_week(client):
    resp = client.post("/api/reminders/schedule", json={"phoneNumber": PHONE, "actionPlan": PLAN})

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert [r["message"] for r in body["reminders"]] == [
        "Week 1 - Fundamentos: Entorno listo",
        "Week 2 - Primer proyecto: Web publicada",
        "Week 3 - Comunidad: Meetup asistido",
    ]
    offsets = [round(_weeks_from_now(r["scheduledFor"])) for r in body["reminders"]]
    assert offsets == [1, 2, 3]


def test_list_reminders_counts_upcoming(client):
    client.post("/api/reminders/schedule", json={"phoneNumber": PHONE, "actionPlan": PLAN})
    client.post("/api/reminders/create", json={"phoneNumber": "+56900000000", "weekNumber": 1, "tasks": []})

    resp = client.get("/api/reminders/list", params={"phoneNumber": PHONE})

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    assert body["upcoming"] == 3
    scheduled = [r["scheduledFor"] for r in body["reminders"]]
    assert scheduled == sorted(scheduled)


def test_list_requires_phone_number(client):
    resp = client.get("/api/reminders/list")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Phone number is required"}


def test_schedule_rejects_plan_without_weeks(client):
    resp = client.post("/api/reminders/schedule", json={"phoneNumber": PHONE, "actionPlan": {"title": "x"}})

    assert resp.status_code == 400


async def test_reminder_attached_to_signed_in_user(client, auth_headers, session_factory):
    client.post(
        "/api/reminders/create",
        json={"phoneNumber": PHONE, "weekNumber": 1, "tasks": []},
        headers=auth_headers,
    )

    async with session_factory() as db:
        reminders = await reminder_service.list_reminders(db, PHONE)

    assert reminders[0].user_id == "sb-student-1"


async def test_upcoming_excludes_sent(session_factory):
    async with session_factory() as db:
        now = datetime.utcnow()
        await reminder_service.schedule_plan_reminders(db, PHONE, PLAN, now=now)
        reminders = await reminder_service.list_reminders(db, PHONE)
        reminders[0].sent = True
        reminders[0].sent_at = now
        await db.commit()

        reminders = await reminder_service.list_reminders(db, PHONE)

    assert len(reminders) == 3
    assert reminder_service.count_upcoming(reminders) == 2
    assert isinstance(reminders[0], Reminder)
    assert reminders[0].scheduled_for == now + timedelta(weeks=1)


async def test_invalid_session_is_ignored_on_create(client, session_factory):
    resp = client.post(
        "/api/reminders/create",
        json={"phoneNumber": PHONE, "weekNumber": 1, "tasks": [{"task": "Curso"}]},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert resp.status_code == 200
    async with session_factory() as db:
        reminders = await reminder_service.list_reminders(db, PHONE)

    assert len(reminders) == 1
    assert reminders[0].user_id is None
