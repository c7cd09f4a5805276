from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Uuid, func

from app.database.base import Base, JSONDocument


class AdminAuditLog(Base):
    __tablename__ = "admin_audit_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    action = Column(String, nullable=False, index=True)
    admin_id = Column(String, nullable=False)
    admin_email = Column(String, nullable=True)
    target = Column(String, nullable=True)
    details = Column(JSONDocument, nullable=False, default=dict)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["AdminAuditLog"]
