from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON
from datetime import datetime
from app.database import Base


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(32), nullable=False, index=True)
    user_id = Column(String(255), nullable=True, index=True)
    week_number = Column(Integer, nullable=False)
    tasks = Column(JSON, nullable=True)
    message = Column(Text, nullable=False)
    scheduled_for = Column(DateTime, nullable=False)
    sent = Column(Boolean, default=False)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "phoneNumber": self.phone_number,
            "weekNumber": self.week_number,
            "tasks": self.tasks or [],
            "message": self.message,
            "scheduledFor": self.scheduled_for.isoformat() if self.scheduled_for else None,
            "sent": bool(self.sent),
            "sentAt": self.sent_at.isoformat() if self.sent_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
