from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.admin.models import AdminAuditLog
from app.core.dependencies import CurrentUser
from app.core.errors import (
    InternalError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from app.core.promocodes.models import PromoCode, PromoRedemption
from app.core.promocodes.revenuecat import EntitlementClient, GrantResult, duration_bucket
from app.response.response import APIError


logger = logging.getLogger(__name__)

# No 0, O, 1, I, L
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 5
MAX_GENERATION_ATTEMPTS = 10
REDEEMABLE_STATUSES = ("active", "reserved")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _get_locked(db: Session, code: str) -> Optional[PromoCode]:
    return (
        db.query(PromoCode)
        .filter(PromoCode.code == code)
        .with_for_update()
        .populate_existing()
        .first()
    )


def has_redeemed(db: Session, code: str, user_id: str) -> bool:
    return (
        db.query(PromoRedemption)
        .filter(
            PromoRedemption.code == code,
            PromoRedemption.used_by == user_id,
            PromoRedemption.success.is_(True),
        )
        .first()
        is not None
    )


def holds_entitlement(db: Session, user_id: str, entitlement_id: str) -> bool:
    """True when a successful redemption of any code already gave ``user_id`` this entitlement."""
    return (
        db.query(PromoRedemption)
        .join(PromoCode, PromoCode.code == PromoRedemption.code)
        .filter(
            PromoRedemption.used_by == user_id,
            PromoRedemption.success.is_(True),
            PromoCode.entitlement_id == entitlement_id,
        )
        .first()
        is not None
    )


def check_redeemable(db: Session, promo: PromoCode, user_id: str, now: datetime) -> None:
    """Raise ``PreconditionError`` unless ``user_id`` may redeem ``promo`` now.

    Lazily detected terminal states are written onto ``promo`` before raising,
    the caller commits them.
    """
    if promo.status not in REDEEMABLE_STATUSES:
        if promo.status == "used":
            raise PreconditionError("This code has already been used")
        raise PreconditionError("This code is no longer valid")

    expires_at = _as_utc(promo.expires_at)
    if expires_at is not None and expires_at < now:
        promo.status = "expired"
        raise PreconditionError("This code has expired")

    if promo.used_count >= promo.max_uses:
        promo.status = "used"
        raise PreconditionError("This code has reached its maximum uses")

    if has_redeemed(db, promo.code, user_id):
        raise PreconditionError("You have already redeemed this code")


def _precheck(db: Session, code: str, user_id: str) -> PromoCode:
    promo = _get_locked(db, code)
    if promo is None:
        raise NotFoundError("Invalid promo code")
    try:
        check_redeemable(db, promo, user_id, _utc_now())
    finally:
        db.commit()
    return promo


def _record_failed_grant(
    db: Session,
    code: str,
    user_id: str,
    grant: GrantResult,
) -> None:
    promo = _get_locked(db, code)
    if promo is None:
        db.rollback()
        return
    db.add(
        PromoRedemption(
            code=promo.code,
            used_by=user_id,
            used_at=_utc_now(),
            revenuecat_grant_id=grant.grant_id,
            success=False,
            error_message=grant.error,
        )
    )
    db.commit()


def _finalize_grant(
    db: Session,
    code: str,
    user_id: str,
    grant: GrantResult,
) -> PromoCode:
    promo = _get_locked(db, code)
    if promo is None:
        raise NotFoundError("Invalid promo code")

    now = _utc_now()
    try:
        check_redeemable(db, promo, user_id, now)
    except PreconditionError:
        db.commit()
        raise

    db.add(
        PromoRedemption(
            code=promo.code,
            used_by=user_id,
            used_at=now,
            revenuecat_grant_id=grant.grant_id,
            success=True,
        )
    )
    promo.used_count = promo.used_count + 1
    promo.status = "used" if promo.used_count >= promo.max_uses else "active"
    db.commit()
    return promo


def _revoke_grant(
    db: Session,
    entitlement_client: EntitlementClient,
    *,
    code: str,
    user_id: str,
    entitlement_id: str,
) -> None:
    # Revoking would also strip the entitlement the user got from another code.
    if holds_entitlement(db, user_id, entitlement_id):
        logger.warning(
            "Kept promotional entitlement after lost redemption race, check expiry manually: "
            "code=%s user=%s entitlement=%s",
            code,
            user_id,
            entitlement_id,
        )
        return
    result = entitlement_client.revoke_promotional(user_id, entitlement_id)
    if result.success:
        logger.warning(
            "Revoked promotional entitlement after lost redemption race: code=%s user=%s",
            code,
            user_id,
        )
        return
    logger.error(
        "Could not revoke promotional entitlement, manual reconciliation needed: "
        "code=%s user=%s entitlement=%s error=%s",
        code,
        user_id,
        entitlement_id,
        result.error,
    )


def redeem_promo_code(
    db: Session,
    entitlement_client: EntitlementClient,
    *,
    code: Optional[str],
    user_id: Optional[str],
) -> Dict[str, Any]:
    if not code or not code.strip():
        raise ValidationError("Promo code is required")
    if not user_id:
        raise ValidationError("Either authentication or appUserId is required")

    normalized = normalize_code(code)

    try:
        promo = _precheck(db, normalized, user_id)
        entitlement_id = promo.entitlement_id
        duration_days = promo.duration_days

        # The grant is a network call, it never runs while the row is locked.
        grant = entitlement_client.grant_promotional(
            user_id,
            entitlement_id,
            duration_bucket(duration_days),
        )

        if not grant.success:
            _record_failed_grant(db, normalized, user_id, grant)
            raise InternalError("Failed to apply promo code. Please try again.")

        try:
            _finalize_grant(db, normalized, user_id, grant)
        except PreconditionError:
            _revoke_grant(
                db,
                entitlement_client,
                code=normalized,
                user_id=user_id,
                entitlement_id=entitlement_id,
            )
            raise
        except Exception:
            db.rollback()
            _revoke_grant(
                db,
                entitlement_client,
                code=normalized,
                user_id=user_id,
                entitlement_id=entitlement_id,
            )
            raise
    except APIError:
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("Error redeeming promo code %s: %r", normalized, exc)
        raise InternalError("Failed to redeem promo code") from exc

    logger.info("Promo code redeemed: code=%s user=%s", normalized, user_id)
    return {
        "success": True,
        "entitlementId": entitlement_id,
        "durationDays": duration_days,
    }


def _audit(
    db: Session,
    *,
    action: str,
    admin: CurrentUser,
    target: str,
    details: Dict[str, Any],
) -> None:
    db.add(
        AdminAuditLog(
            action=action,
            admin_id=admin.uid,
            admin_email=admin.email,
            target=target,
            details=details,
            created_at=_utc_now(),
        )
    )


def _generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def generate_unique_promo_code(db: Session) -> str:
    for _ in range(MAX_GENERATION_ATTEMPTS):
        code = _generate_code()
        if db.get(PromoCode, code) is None:
            return code
    raise InternalError(
        "Failed to generate unique code",
        code="PROMO_CODE_GENERATION_FAILED",
    )


def generate_promo_code(
    db: Session,
    *,
    admin: CurrentUser,
    entitlement_id: str = "Pro",
    duration_days: int = 365,
) -> PromoCode:
    code = generate_unique_promo_code(db)
    promo = PromoCode(
        code=code,
        type="single_use",
        status="active",
        max_uses=1,
        used_count=0,
        entitlement_id=entitlement_id,
        duration_days=duration_days,
        expires_at=None,
        created_by=admin.uid,
        created_by_email=admin.email,
        created_at=_utc_now(),
    )
    db.add(promo)
    _audit(
        db,
        action="promo_code_generated",
        admin=admin,
        target=code,
        details={
            "code": code,
            "entitlementId": entitlement_id,
            "durationDays": duration_days,
        },
    )
    db.commit()
    return promo


def _get_or_404(db: Session, code: str) -> PromoCode:
    promo = _get_locked(db, normalize_code(code))
    if promo is None:
        raise NotFoundError("Promo code not found")
    return promo


def reserve_promo_code(
    db: Session,
    *,
    admin: CurrentUser,
    code: str,
    reserved_for: str,
) -> PromoCode:
    promo = _get_or_404(db, code)
    if promo.status != "active":
        db.rollback()
        raise PreconditionError(f"Cannot reserve a code with status: {promo.status}")

    promo.status = "reserved"
    promo.reserved_for = reserved_for.strip()
    promo.reserved_by = admin.email
    promo.reserved_at = _utc_now()
    _audit(
        db,
        action="promo_code_reserved",
        admin=admin,
        target=promo.code,
        details={"code": promo.code, "reservedFor": promo.reserved_for},
    )
    db.commit()
    return promo


def unreserve_promo_code(
    db: Session,
    *,
    admin: CurrentUser,
    code: str,
) -> PromoCode:
    promo = _get_or_404(db, code)
    if promo.status != "reserved":
        db.rollback()
        raise PreconditionError("Code is not reserved")

    promo.status = "active"
    promo.reserved_for = None
    promo.reserved_by = None
    promo.reserved_at = None
    _audit(
        db,
        action="promo_code_unreserved",
        admin=admin,
        target=promo.code,
        details={"code": promo.code},
    )
    db.commit()
    return promo


def list_promo_codes(
    db: Session,
    *,
    status: Optional[str] = None,
    page_size: int = 50,
) -> List[PromoCode]:
    query = db.query(PromoCode)
    if status:
        query = query.filter(PromoCode.status == status)
    return (
        query.order_by(PromoCode.created_at.desc(), PromoCode.code)
        .limit(page_size)
        .all()
    )


__all__ = [
    "CODE_ALPHABET",
    "normalize_code",
    "has_redeemed",
    "holds_entitlement",
    "check_redeemable",
    "redeem_promo_code",
    "generate_unique_promo_code",
    "generate_promo_code",
    "reserve_promo_code",
    "unreserve_promo_code",
    "list_promo_codes",
]
