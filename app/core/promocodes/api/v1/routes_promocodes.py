from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import (
    CurrentUser,
    get_db,
    get_entitlement_client,
    get_optional_user,
)
from app.core.promocodes.revenuecat import EntitlementClient
from app.core.promocodes.schemas import PromoRedeemRequest, PromoRedeemResponse
from app.core.promocodes.services import redeem_promo_code
from app.core.validation import validate_payload


router = APIRouter(prefix="/promocodes", tags=["promocodes"])


@router.post(
    "/redeem",
    response_model=PromoRedeemResponse,
)
def redeem_promocode(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    entitlement_client: EntitlementClient = Depends(get_entitlement_client),
) -> PromoRedeemResponse:
    request = validate_payload(PromoRedeemRequest, payload)

    # Anonymous mobile installs redeem with their billing app user id.
    user_id = user.uid if user else request.appUserId
    result = redeem_promo_code(
        db,
        entitlement_client,
        code=request.code,
        user_id=user_id,
    )
    return PromoRedeemResponse(**result)


__all__ = ["router"]
