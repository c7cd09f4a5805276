from __future__ import annotations

from sqlalchemy import Column, DateTime, String, func

from app.database.base import Base, JSONDocument


class Itinerary(Base):
    __tablename__ = "itineraries"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    # Stored as the clients saved it; key names vary between app versions.
    document = Column(JSONDocument, nullable=False, default=dict)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


__all__ = ["Itinerary"]
