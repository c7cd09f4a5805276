"""Best-effort interaction logging.

Every public method here is a side task: it runs on a small background pool,
the caller waits at most ``timeout`` seconds for the result and gets ``None``
on any failure or timeout. Failures are reported through the module logger
only, they never reach the request path.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.ai.models import AIErrorLog, PromptLog, UsageStat


logger = logging.getLogger(__name__)

T = TypeVar("T")

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="prompt-log")

# Flat estimate used when the provider does not report image tokens.
IMAGE_TOKEN_ESTIMATE = 258


@dataclass
class PromptLogRecord:
    user_id: str
    prompt_type: str
    user_request: Any
    prompt_text: str
    llm_response: Any
    token_usage: Dict[str, Any]
    ai_config: Dict[str, Any]
    performance: Dict[str, Any]
    category: str = "travel"
    session_id: Optional[str] = None
    food_metadata: Optional[Dict[str, Any]] = None


@dataclass
class ErrorLogRecord:
    user_id: str
    prompt_type: str
    error_code: str
    error_message: str
    user_request: Any
    prompt_text: Optional[str] = None
    session_id: Optional[str] = None
    performance: Dict[str, Any] = field(default_factory=dict)


def _as_json_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def extract_token_usage(
    usage: Optional[Mapping[str, Any]],
    *,
    includes_image: bool = False,
) -> Dict[str, Any]:
    usage = usage or {}
    token_usage: Dict[str, Any] = {
        "prompt_tokens": usage.get("promptTokenCount") or 0,
        "candidates_tokens": usage.get("candidatesTokenCount") or 0,
        "total_tokens": usage.get("totalTokenCount") or 0,
    }

    optional = (
        ("thoughtsTokenCount", "thinking_tokens"),
        ("cachedContentTokenCount", "cached_content_tokens"),
        ("toolUsePromptTokenCount", "tool_use_prompt_tokens"),
        ("trafficType", "traffic_type"),
    )
    for source, target in optional:
        if usage.get(source) is not None:
            token_usage[target] = usage[source]

    if includes_image:
        token_usage["image_tokens"] = IMAGE_TOKEN_ESTIMATE
    return token_usage


class PromptLogger:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        timeout: Optional[float] = 2.0,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout = timeout
        self._executor = executor or _executor

    def _guarded(self, label: str, fn: Callable[[], T]) -> Optional[T]:
        try:
            return fn()
        except Exception:
            logger.exception("[%s] interaction log write failed", label)
            return None

    def _submit(self, label: str, fn: Callable[[], T]) -> Optional[T]:
        try:
            future = self._executor.submit(self._guarded, label, fn)
        except RuntimeError:
            logger.exception("[%s] interaction log pool unavailable", label)
            return None
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            logger.warning(
                "[%s] interaction log still pending after %ss, answering without id",
                label,
                self._timeout,
            )
            return None

    def log_prompt(self, record: PromptLogRecord) -> Optional[str]:
        label = f"{record.user_id}/{record.prompt_type}"

        def write() -> str:
            db = self._session_factory()
            try:
                row = PromptLog(
                    category=record.category,
                    user_id=record.user_id,
                    prompt_type=record.prompt_type,
                    session_id=record.session_id,
                    user_request=_as_json_text(record.user_request),
                    prompt_text=record.prompt_text,
                    llm_response=_as_json_text(record.llm_response),
                    token_usage=record.token_usage,
                    ai_config=record.ai_config,
                    performance=record.performance,
                    food_metadata=record.food_metadata,
                )
                db.add(row)
                db.commit()
                logger.info(
                    "[%s] [%s] [%s] logged, tokens=%s time=%sms",
                    record.user_id,
                    record.prompt_type,
                    row.id,
                    record.token_usage.get("total_tokens"),
                    record.performance.get("response_time_ms"),
                )
                return str(row.id)
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        return self._submit(label, write)

    def log_error(self, record: ErrorLogRecord) -> None:
        label = f"{record.user_id}/{record.prompt_type}"

        def write() -> None:
            db = self._session_factory()
            try:
                db.add(
                    AIErrorLog(
                        user_id=record.user_id,
                        prompt_type=record.prompt_type,
                        session_id=record.session_id,
                        error_code=record.error_code,
                        error_message=record.error_message,
                        user_request=_as_json_text(record.user_request),
                        prompt_text=record.prompt_text or "No prompt generated",
                        performance=record.performance,
                    )
                )
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        self._submit(label, write)

    def record_usage(self, user_id: str, token_usage: Mapping[str, Any]) -> None:
        today = datetime.now(timezone.utc).date().isoformat()
        key = f"{user_id}_{today}"

        def apply(db: Session) -> None:
            stat = db.get(UsageStat, key)
            if stat is None:
                stat = UsageStat(
                    id=key,
                    user_id=user_id,
                    date=today,
                    total_tokens=0,
                    prompt_tokens=0,
                    completion_tokens=0,
                    image_analysis_count=0,
                    request_count=0,
                )
                db.add(stat)
            stat.total_tokens += int(token_usage.get("total_tokens") or 0)
            stat.prompt_tokens += int(token_usage.get("prompt_tokens") or 0)
            stat.completion_tokens += int(token_usage.get("candidates_tokens") or 0)
            stat.image_analysis_count += 1 if token_usage.get("image_tokens") else 0
            stat.request_count += 1

        def write() -> None:
            db = self._session_factory()
            try:
                apply(db)
                db.commit()
            except IntegrityError:
                # Concurrent first write of the day; the row exists now.
                db.rollback()
                apply(db)
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

        self._submit(f"{user_id}/usage", write)


__all__ = [
    "PromptLogRecord",
    "ErrorLogRecord",
    "PromptLogger",
    "extract_token_usage",
    "IMAGE_TOKEN_ESTIMATE",
]
