from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, Uuid, func

from app.database.base import Base


class NotificationLog(Base):
    __tablename__ = "notification_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)  # "<day>_onboarding"
    title = Column(String, nullable=True)
    body = Column(Text, nullable=True)
    language = Column(String, nullable=True)
    # YYYY-MM-DD
    date = Column(String, nullable=False)

    success = Column(Boolean, nullable=False, default=False)
    message_id = Column(String, nullable=True)
    error = Column(Text, nullable=True)
    processing_time_ms = Column(Integer, nullable=False, default=0)

    sent_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["NotificationLog"]
