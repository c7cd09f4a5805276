from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.database.base import Base


class PromoCode(Base):
    __tablename__ = "promo_codes"

    code = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="active")  # active|reserved|used|expired
    type = Column(String, nullable=False, default="single_use")
    max_uses = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)
    entitlement_id = Column(String, nullable=False, default="Pro")
    duration_days = Column(Integer, nullable=False, default=365)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    reserved_for = Column(String, nullable=True)
    reserved_by = Column(String, nullable=True)
    reserved_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(String, nullable=True)
    created_by_email = Column(String, nullable=True)
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

    redemptions = relationship(
        "PromoRedemption",
        back_populates="promo_code",
        cascade="all, delete-orphan",
        order_by="PromoRedemption.used_at",
    )


class PromoRedemption(Base):
    __tablename__ = "promo_redemptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(
        String,
        ForeignKey("promo_codes.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    used_by = Column(String, nullable=False, index=True)
    used_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    revenuecat_grant_id = Column(String, nullable=True)
    success = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)

    promo_code = relationship("PromoCode", back_populates="redemptions")


__all__ = ["PromoCode", "PromoRedemption"]
