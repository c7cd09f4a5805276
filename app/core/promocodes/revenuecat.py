from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import httpx


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrantResult:
    success: bool
    grant_id: Optional[str] = None
    error: Optional[str] = None


class EntitlementClient(Protocol):
    def grant_promotional(
        self,
        app_user_id: str,
        entitlement_id: str,
        duration: str,
    ) -> GrantResult:
        ...

    def revoke_promotional(self, app_user_id: str, entitlement_id: str) -> GrantResult:
        ...


def duration_bucket(duration_days: int) -> str:
    if duration_days >= 9999:
        return "lifetime"
    if duration_days <= 31:
        return "monthly"
    return "yearly"


class RevenueCatClient:
    """Promotional entitlements through the RevenueCat REST API.

    Both calls report failures in the returned ``GrantResult`` instead of
    raising, the caller decides what a failed grant means for its own state.
    """

    def __init__(self, *, base_url: str, secret_key: str, timeout: float = 15) -> None:
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.timeout = timeout

    def _entitlement_url(self, app_user_id: str, entitlement_id: str) -> str:
        return (
            f"{self.base_url}/subscribers/{quote(app_user_id, safe='')}"
            f"/entitlements/{quote(entitlement_id, safe='')}"
        )

    def _post(self, url: str, body: Optional[Dict[str, Any]] = None) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, json=body or {}, headers=headers)

    @staticmethod
    def _error_from(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("message") if isinstance(payload, dict) else None
        return f"RevenueCat API error: {response.status_code} - {message or response.reason_phrase}"

    def grant_promotional(
        self,
        app_user_id: str,
        entitlement_id: str,
        duration: str = "yearly",
    ) -> GrantResult:
        url = f"{self._entitlement_url(app_user_id, entitlement_id)}/promotional"
        try:
            response = self._post(url, {"duration": duration})
        except httpx.HTTPError as exc:
            logger.error("RevenueCat request failed: %r", exc)
            return GrantResult(success=False, error=str(exc) or "Unknown error occurred")

        if response.is_error:
            error = self._error_from(response)
            logger.error("RevenueCat grant failed for %s: %s", app_user_id, error)
            return GrantResult(success=False, error=error)

        try:
            data = response.json()
        except ValueError:
            data = {}
        subscriber = data.get("subscriber") if isinstance(data, dict) else None
        grant_id = None
        if isinstance(subscriber, dict):
            grant_id = subscriber.get("original_app_user_id")

        logger.info(
            "RevenueCat entitlement granted: user=%s entitlement=%s duration=%s",
            app_user_id,
            entitlement_id,
            duration,
        )
        return GrantResult(success=True, grant_id=grant_id or app_user_id)

    def revoke_promotional(self, app_user_id: str, entitlement_id: str) -> GrantResult:
        url = f"{self._entitlement_url(app_user_id, entitlement_id)}/revoke_promotionals"
        try:
            response = self._post(url)
        except httpx.HTTPError as exc:
            logger.error("RevenueCat revoke request failed: %r", exc)
            return GrantResult(success=False, error=str(exc) or "Unknown error occurred")

        if response.is_error:
            error = self._error_from(response)
            logger.error("RevenueCat revoke failed for %s: %s", app_user_id, error)
            return GrantResult(success=False, error=error)

        logger.info(
            "RevenueCat promotional entitlement revoked: user=%s entitlement=%s",
            app_user_id,
            entitlement_id,
        )
        return GrantResult(success=True, grant_id=app_user_id)


__all__ = ["GrantResult", "EntitlementClient", "RevenueCatClient", "duration_bucket"]
