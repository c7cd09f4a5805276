from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.admin.models import AdminAuditLog
from app.core.errors import InternalError
from app.core.promocodes import services
from app.core.promocodes.models import PromoCode

from conftest import auth_headers


def _seed(session_factory, *codes) -> None:
    db = session_factory()
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for offset, (code, status) in enumerate(codes):
        db.add(
            PromoCode(
                code=code,
                status=status,
                type="single_use",
                max_uses=1,
                used_count=1 if status == "used" else 0,
                entitlement_id="Pro",
                duration_days=365,
                created_at=base + timedelta(days=offset),
            )
        )
    db.commit()
    db.close()


def _audit_actions(session_factory):
    db = session_factory()
    rows = db.query(AdminAuditLog).order_by(AdminAuditLog.created_at).all()
    db.close()
    return [(row.action, row.target) for row in rows]


def test_generate_promo_code(client, session_factory, admin_headers) -> None:
    response = client.post("/api/v1/admin/promocodes", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    code = data["code"]
    assert len(code) == 5
    assert set(code) <= set(services.CODE_ALPHABET)
    assert data["status"] == "active"
    assert data["type"] == "single_use"
    assert data["max_uses"] == 1
    assert data["entitlement_id"] == "Pro"
    assert data["duration_days"] == 365
    assert data["created_by_email"] == "admin@flaia.app"
    assert data["redemptions"] == []
    assert _audit_actions(session_factory) == [("promo_code_generated", code)]


def test_generate_with_custom_entitlement(client, admin_headers) -> None:
    response = client.post(
        "/api/v1/admin/promocodes",
        json={"entitlement_id": "Lifetime", "duration_days": 9999},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["entitlement_id"] == "Lifetime"
    assert data["duration_days"] == 9999


def test_generation_gives_up_after_repeated_collisions(db, session_factory, monkeypatch) -> None:
    _seed(session_factory, ("AAAAA", "active"))
    monkeypatch.setattr(services, "_generate_code", lambda: "AAAAA")

    with pytest.raises(InternalError) as exc_info:
        services.generate_unique_promo_code(db)

    assert exc_info.value.code == "PROMO_CODE_GENERATION_FAILED"
    assert exc_info.value.message == "Failed to generate unique code"


def test_reserve_and_unreserve(client, session_factory, admin_headers) -> None:
    _seed(session_factory, ("ABCDE", "active"))

    reserved = client.post(
        "/api/v1/admin/promocodes/abcde/reserve",
        json={"reserved_for": "  influencer@example.com "},
        headers=admin_headers,
    )

    assert reserved.status_code == 200
    data = reserved.json()["data"]
    assert data["status"] == "reserved"
    assert data["reserved_for"] == "influencer@example.com"
    assert data["reserved_by"] == "admin@flaia.app"
    assert data["reserved_at"] is not None

    again = client.post(
        "/api/v1/admin/promocodes/ABCDE/reserve",
        json={"reserved_for": "someone"},
        headers=admin_headers,
    )
    assert again.status_code == 400
    assert again.json()["error"]["message"] == "Cannot reserve a code with status: reserved"

    released = client.post("/api/v1/admin/promocodes/ABCDE/unreserve", headers=admin_headers)

    assert released.status_code == 200
    data = released.json()["data"]
    assert data["status"] == "active"
    assert data["reserved_for"] is None
    assert _audit_actions(session_factory) == [
        ("promo_code_reserved", "ABCDE"),
        ("promo_code_unreserved", "ABCDE"),
    ]


def test_unreserve_requires_reserved_status(client, session_factory, admin_headers) -> None:
    _seed(session_factory, ("ABCDE", "active"))

    response = client.post("/api/v1/admin/promocodes/ABCDE/unreserve", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Code is not reserved"
    assert _audit_actions(session_factory) == []


def test_reserve_unknown_code(client, admin_headers) -> None:
    response = client.post(
        "/api/v1/admin/promocodes/ZZZZZ/reserve",
        json={"reserved_for": "someone"},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Promo code not found"


def test_list_newest_first_with_status_filter(client, session_factory, admin_headers) -> None:
    _seed(session_factory, ("AAAAA", "active"), ("BBBBB", "used"), ("CCCCC", "active"))

    everything = client.get("/api/v1/admin/promocodes", headers=admin_headers).json()
    active = client.get("/api/v1/admin/promocodes?status=active&page_size=1", headers=admin_headers).json()

    assert [item["code"] for item in everything["data"]] == ["CCCCC", "BBBBB", "AAAAA"]
    assert everything["metadata"]["count"] == 3
    assert [item["code"] for item in active["data"]] == ["CCCCC"]
    assert active["metadata"]["status"] == "active"


def test_admin_routes_require_admin_email(client) -> None:
    response = client.post("/api/v1/admin/promocodes", headers=auth_headers("u1", "user@example.com"))
    anonymous = client.get("/api/v1/admin/promocodes")

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "permission-denied"
    assert anonymous.status_code == 401
