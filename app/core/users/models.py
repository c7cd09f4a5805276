from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, func

from app.database.base import Base


class User(Base):
    __tablename__ = "users"

    # Identity-provider uid, shared with the mobile clients and the billing platform.
    id = Column(String, primary_key=True)
    email = Column(String, nullable=True, index=True)
    display_name = Column(String, nullable=True)
    language_selected = Column(String, nullable=False, default="en")
    notifications_enabled = Column(Boolean, nullable=False, default=False)
    fcm_token = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


__all__ = ["User"]
