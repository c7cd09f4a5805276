from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import CurrentUser, get_current_admin, get_db
from app.core.promocodes.schemas import (
    PromoCodeCreate,
    PromoCodePublic,
    PromoCodeReserve,
    PromoStatus,
)
from app.core.promocodes.services import (
    generate_promo_code,
    list_promo_codes,
    reserve_promo_code,
    unreserve_promo_code,
)
from app.response import StandardResponse, make_success_response


router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/promocodes",
    response_model=StandardResponse,
)
def create_promocode(
    payload: Optional[PromoCodeCreate] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin),
) -> StandardResponse:
    payload = payload or PromoCodeCreate()
    promo = generate_promo_code(
        db,
        admin=admin,
        entitlement_id=payload.entitlement_id,
        duration_days=payload.duration_days,
    )
    return make_success_response(
        PromoCodePublic.model_validate(promo).model_dump(mode="json"),
    )


@router.get(
    "/promocodes",
    response_model=StandardResponse,
)
def get_promocodes(
    status: Optional[PromoStatus] = Query(None),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(get_current_admin),
) -> StandardResponse:
    promos = list_promo_codes(db, status=status, page_size=page_size)
    items = [
        PromoCodePublic.model_validate(promo).model_dump(mode="json")
        for promo in promos
    ]
    return make_success_response(
        items,
        metadata={"count": len(items), "status": status},
    )


@router.post(
    "/promocodes/{code}/reserve",
    response_model=StandardResponse,
)
def reserve_promocode(
    code: str,
    payload: PromoCodeReserve,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin),
) -> StandardResponse:
    promo = reserve_promo_code(
        db,
        admin=admin,
        code=code,
        reserved_for=payload.reserved_for,
    )
    return make_success_response(
        PromoCodePublic.model_validate(promo).model_dump(mode="json"),
    )


@router.post(
    "/promocodes/{code}/unreserve",
    response_model=StandardResponse,
)
def unreserve_promocode(
    code: str,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin),
) -> StandardResponse:
    promo = unreserve_promo_code(db, admin=admin, code=code)
    return make_success_response(
        PromoCodePublic.model_validate(promo).model_dump(mode="json"),
    )


__all__ = ["router"]
