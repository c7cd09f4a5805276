from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


PromoStatus = Literal["active", "reserved", "used", "expired"]


class PromoRedeemRequest(BaseModel):
    code: Optional[str] = None
    appUserId: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class PromoRedeemResponse(BaseModel):
    success: bool = True
    entitlementId: str
    durationDays: int


class PromoRedemptionPublic(BaseModel):
    used_by: str
    used_at: datetime
    revenuecat_grant_id: Optional[str] = None
    success: bool
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PromoCodePublic(BaseModel):
    code: str
    status: PromoStatus
    type: str
    max_uses: int
    used_count: int
    entitlement_id: str
    duration_days: int
    expires_at: Optional[datetime] = None
    reserved_for: Optional[str] = None
    reserved_by: Optional[str] = None
    reserved_at: Optional[datetime] = None
    created_by_email: Optional[str] = None
    created_at: datetime
    redemptions: List[PromoRedemptionPublic] = []

    model_config = ConfigDict(from_attributes=True)


class PromoCodeCreate(BaseModel):
    entitlement_id: str = Field(default="Pro", min_length=1)
    duration_days: int = Field(default=365, ge=1)


class PromoCodeReserve(BaseModel):
    reserved_for: str = Field(min_length=1)


__all__ = [
    "PromoStatus",
    "PromoRedeemRequest",
    "PromoRedeemResponse",
    "PromoRedemptionPublic",
    "PromoCodePublic",
    "PromoCodeCreate",
    "PromoCodeReserve",
]
