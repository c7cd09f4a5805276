from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.core.errors import InternalError, NotFoundError, PreconditionError, ValidationError
from app.core.promocodes import revenuecat
from app.core.promocodes.models import PromoCode, PromoRedemption
from app.core.promocodes.revenuecat import RevenueCatClient, duration_bucket
from app.core.promocodes.services import holds_entitlement, redeem_promo_code

from conftest import StubEntitlementClient, auth_headers


def _add_code(session_factory, code: str = "ABCDE", **fields) -> None:
    db = session_factory()
    values = dict(
        code=code,
        status="active",
        type="single_use",
        max_uses=1,
        used_count=0,
        entitlement_id="Pro",
        duration_days=365,
        created_by="admin-1",
    )
    values.update(fields)
    db.add(PromoCode(**values))
    db.commit()
    db.close()


def _load(session_factory, code: str = "ABCDE") -> PromoCode:
    db = session_factory()
    promo = db.get(PromoCode, code)
    list(promo.redemptions)
    db.close()
    return promo


def test_redeem_single_use_code(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory)

    result = redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert result == {"success": True, "entitlementId": "Pro", "durationDays": 365}
    assert entitlement_client.grants == [("u1", "Pro", "yearly")]
    promo = _load(session_factory)
    assert promo.used_count == 1
    assert promo.status == "used"
    assert [(r.used_by, r.success) for r in promo.redemptions] == [("u1", True)]
    assert promo.redemptions[0].revenuecat_grant_id == "u1"


def test_second_user_cannot_redeem_used_code(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory)
    redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u2")

    assert exc_info.value.message == "This code has already been used"
    assert exc_info.value.code == "failed-precondition"
    assert len(entitlement_client.grants) == 1
    assert _load(session_factory).used_count == 1


def test_exhausted_code_is_marked_used(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, used_count=1)

    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u2")

    assert exc_info.value.message == "This code has reached its maximum uses"
    assert _load(session_factory).status == "used"
    assert entitlement_client.grants == []


def test_same_user_cannot_redeem_twice(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, type="multi_use", max_uses=2)
    redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert _load(session_factory).status == "active"
    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert exc_info.value.message == "You have already redeemed this code"
    assert _load(session_factory).used_count == 1


def test_expired_code_status_is_persisted(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, expires_at=datetime.now(timezone.utc) - timedelta(days=1))

    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert exc_info.value.message == "This code has expired"
    assert _load(session_factory).status == "expired"


def test_revoked_code_is_no_longer_valid(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, status="revoked")

    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert exc_info.value.message == "This code is no longer valid"


def test_reserved_code_can_be_redeemed(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, status="reserved", reserved_for="partner@example.com")

    redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert _load(session_factory).status == "used"


def test_unknown_code_is_not_found(db, entitlement_client) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ZZZZZ", user_id="u1")

    assert exc_info.value.message == "Invalid promo code"


def test_code_is_normalized(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory)

    redeem_promo_code(db, entitlement_client, code="  abcde ", user_id="u1")

    assert _load(session_factory).used_count == 1


def test_code_and_user_are_required(db, entitlement_client) -> None:
    with pytest.raises(ValidationError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="   ", user_id="u1")
    assert exc_info.value.message == "Promo code is required"

    with pytest.raises(ValidationError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id=None)
    assert exc_info.value.message == "Either authentication or appUserId is required"


def test_failed_grant_is_recorded_without_consuming_the_code(
    db, session_factory, entitlement_client
) -> None:
    _add_code(session_factory)
    entitlement_client.succeed = False

    with pytest.raises(InternalError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert exc_info.value.message == "Failed to apply promo code. Please try again."
    promo = _load(session_factory)
    assert promo.used_count == 0
    assert promo.status == "active"
    assert [(r.success, r.error_message) for r in promo.redemptions] == [
        (False, "RevenueCat API error: 500 - boom")
    ]

    entitlement_client.succeed = True
    redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")
    assert _load(session_factory).used_count == 1


def test_lost_race_revokes_the_grant(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory)

    def concurrent_redemption() -> None:
        other = session_factory()
        promo = other.get(PromoCode, "ABCDE")
        promo.used_count = 1
        promo.status = "used"
        other.add(PromoRedemption(code="ABCDE", used_by="u2", used_at=datetime.now(timezone.utc), success=True))
        other.commit()
        other.close()

    entitlement_client.on_grant = concurrent_redemption

    with pytest.raises(PreconditionError):
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert entitlement_client.revokes == [("u1", "Pro")]
    promo = _load(session_factory)
    assert promo.used_count == 1
    assert [r.used_by for r in promo.redemptions] == ["u2"]


def test_lost_race_keeps_entitlement_held_from_another_code(
    db, session_factory, entitlement_client
) -> None:
    _add_code(session_factory)
    _add_code(session_factory, code="FGHJK")
    redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    def concurrent_redemption() -> None:
        other = session_factory()
        promo = other.get(PromoCode, "FGHJK")
        promo.used_count = 1
        promo.status = "used"
        other.add(PromoRedemption(code="FGHJK", used_by="u2", used_at=datetime.now(timezone.utc), success=True))
        other.commit()
        other.close()

    entitlement_client.on_grant = concurrent_redemption

    with pytest.raises(PreconditionError):
        redeem_promo_code(db, entitlement_client, code="FGHJK", user_id="u1")

    assert entitlement_client.revokes == []
    assert holds_entitlement(db, "u1", "Pro") is True
    assert [r.used_by for r in _load(session_factory, "FGHJK").redemptions] == ["u2"]


def test_multi_use_code_stops_at_max_uses(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, type="multi_use", max_uses=3)

    for user_id in ("u1", "u2", "u3"):
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id=user_id)
    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u4")

    assert exc_info.value.message == "This code has already been used"
    assert len(entitlement_client.grants) == 3
    promo = _load(session_factory)
    assert promo.used_count == 3
    assert promo.status == "used"
    assert sorted(r.used_by for r in promo.redemptions if r.success) == ["u1", "u2", "u3"]


def test_multi_use_code_interleaved_redemptions(db, session_factory, entitlement_client) -> None:
    _add_code(session_factory, type="multi_use", max_uses=3)
    other_client = StubEntitlementClient()

    def three_more_users() -> None:
        entitlement_client.on_grant = None
        for user_id in ("u2", "u3", "u4"):
            other = session_factory()
            try:
                redeem_promo_code(other, other_client, code="ABCDE", user_id=user_id)
            finally:
                other.close()

    entitlement_client.on_grant = three_more_users

    with pytest.raises(PreconditionError) as exc_info:
        redeem_promo_code(db, entitlement_client, code="ABCDE", user_id="u1")

    assert exc_info.value.message == "This code has already been used"
    assert entitlement_client.revokes == [("u1", "Pro")]
    assert other_client.revokes == []
    promo = _load(session_factory)
    assert promo.used_count == 3
    assert promo.status == "used"
    assert sorted(r.used_by for r in promo.redemptions if r.success) == ["u2", "u3", "u4"]


def test_redeem_route_with_authenticated_user(client, session_factory, entitlement_client, user_headers) -> None:
    _add_code(session_factory, duration_days=30)

    response = client.post("/api/v1/promocodes/redeem", json={"code": "abcde"}, headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "entitlementId": "Pro", "durationDays": 30}
    assert entitlement_client.grants == [("u1", "Pro", "monthly")]


def test_redeem_route_with_app_user_id(client, session_factory, entitlement_client) -> None:
    _add_code(session_factory)

    response = client.post(
        "/api/v1/promocodes/redeem",
        json={"code": "ABCDE", "appUserId": "$RCAnonymousID:abc"},
    )

    assert response.status_code == 200
    assert entitlement_client.grants[0][0] == "$RCAnonymousID:abc"


def test_authenticated_user_wins_over_app_user_id(client, session_factory, entitlement_client) -> None:
    _add_code(session_factory)

    client.post(
        "/api/v1/promocodes/redeem",
        json={"code": "ABCDE", "appUserId": "someone-else"},
        headers=auth_headers("u7"),
    )

    assert entitlement_client.grants[0][0] == "u7"


def test_redeem_route_errors(client, session_factory) -> None:
    _add_code(session_factory, used_count=1)

    missing = client.post("/api/v1/promocodes/redeem", json={"appUserId": "u1"})
    anonymous = client.post("/api/v1/promocodes/redeem", json={"code": "ABCDE"})
    exhausted = client.post("/api/v1/promocodes/redeem", json={"code": "ABCDE", "appUserId": "u1"})
    unknown = client.post("/api/v1/promocodes/redeem", json={"code": "QQQQQ", "appUserId": "u1"})

    assert missing.status_code == 400
    assert missing.json()["error"]["message"] == "Promo code is required"
    assert anonymous.status_code == 400
    assert exhausted.status_code == 400
    assert exhausted.json()["error"]["code"] == "failed-precondition"
    assert unknown.status_code == 404


def test_duration_buckets() -> None:
    assert duration_bucket(7) == "monthly"
    assert duration_bucket(31) == "monthly"
    assert duration_bucket(365) == "yearly"
    assert duration_bucket(9999) == "lifetime"


@pytest.fixture()
def revenuecat_requests(monkeypatch):
    requests = []
    responses = []
    real_client = httpx.Client

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses.pop(0)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(revenuecat.httpx, "Client", client_factory)
    return requests, responses


def test_revenuecat_grant_request(revenuecat_requests) -> None:
    requests, responses = revenuecat_requests
    responses.append(httpx.Response(201, json={"subscriber": {"original_app_user_id": "orig-1"}}))
    client = RevenueCatClient(base_url="https://api.revenuecat.com/v1/", secret_key="sk_test")

    result = client.grant_promotional("user 1", "Pro", "yearly")

    assert result.success is True
    assert result.grant_id == "orig-1"
    request = requests[0]
    assert str(request.url) == "https://api.revenuecat.com/v1/subscribers/user%201/entitlements/Pro/promotional"
    assert request.headers["Authorization"] == "Bearer sk_test"
    assert json.loads(request.content) == {"duration": "yearly"}


def test_revenuecat_errors_are_reported_not_raised(revenuecat_requests) -> None:
    requests, responses = revenuecat_requests
    responses.append(httpx.Response(404, json={"message": "Subscriber not found"}))
    responses.append(httpx.Response(500, text="oops"))
    client = RevenueCatClient(base_url="https://api.revenuecat.com/v1", secret_key="sk_test")

    grant = client.grant_promotional("u1", "Pro")
    revoke = client.revoke_promotional("u1", "Pro")

    assert grant.success is False
    assert grant.error == "RevenueCat API error: 404 - Subscriber not found"
    assert revoke.success is False
    assert revoke.error == "RevenueCat API error: 500 - Internal Server Error"
    assert str(requests[1].url).endswith("/entitlements/Pro/revoke_promotionals")
