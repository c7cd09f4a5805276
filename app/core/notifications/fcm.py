from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx
from loguru import logger


class PushDeliveryError(Exception):
    pass


class PushClient(Protocol):
    def send(
        self,
        *,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> str:
        ...


def build_message(
    *,
    token: str,
    title: str,
    body: str,
    data: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    return {
        "message": {
            "token": token,
            "notification": {"title": title, "body": body},
            "data": dict(data or {}),
            "android": {
                "priority": "high",
                "notification": {
                    "icon": "notification_icon",
                    "color": "#FF6B35",
                    "sound": "default",
                },
            },
            "apns": {
                "payload": {
                    "aps": {"sound": "default", "badge": 1},
                },
            },
        }
    }


class FCMClient:
    """Firebase Cloud Messaging HTTP v1 sender."""

    def __init__(self, *, send_url: str, server_key: str, timeout: float = 10) -> None:
        self.send_url = send_url
        self.server_key = server_key
        self.timeout = timeout

    def send(
        self,
        *,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> str:
        headers = {"Authorization": f"Bearer {self.server_key}"}
        payload = build_message(token=token, title=title, body=body, data=data)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.send_url, json=payload, headers=headers)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("FCM send failed", error=str(exc))
            raise PushDeliveryError(str(exc)) from exc

        message_id = result.get("name") if isinstance(result, dict) else None
        if not message_id:
            raise PushDeliveryError("FCM response did not contain a message id")
        return message_id


__all__ = ["PushDeliveryError", "PushClient", "FCMClient", "build_message"]
