from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from app.core.ai.model_config import AIModelConfig
from app.core.errors import (
    EmptyResponseError,
    MalformedResponseError,
    ModelServiceError,
    SchemaViolationError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str = "image/jpeg"

    def as_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass
class ModelResult:
    text: Optional[str]
    usage: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelInvocation:
    data: Dict[str, Any]
    usage: Dict[str, Any]
    response_time_ms: int


class ModelTransport(Protocol):
    def generate(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        config: AIModelConfig,
        *,
        image: Optional[InlineImage] = None,
    ) -> ModelResult:
        ...


class AIProxyClient:
    """Structured-output calls through the internal AI proxy."""

    def __init__(self, *, url: str, api_key: str = "", timeout: float = 120) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def _build_content(self, prompt: str, image: Optional[InlineImage]) -> Any:
        if image is None:
            return prompt
        return [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image.as_data_url()}},
        ]

    def generate(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        config: AIModelConfig,
        *,
        image: Optional[InlineImage] = None,
    ) -> ModelResult:
        generation = config.generation_config(response_schema)
        request_body = {
            "model": config.model,
            "messages": [
                {"role": "user", "content": self._build_content(prompt, image)},
            ],
            "temperature": generation["temperature"],
            "max_tokens": generation["max_output_tokens"],
            "thinking": generation["thinking_config"],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": response_schema},
            },
        }
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, json=request_body, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ModelServiceError(f"AI proxy request failed: {exc}") from exc

        content = data.get("content") if isinstance(data, dict) else None
        usage = data.get("usage") if isinstance(data, dict) else None
        return ModelResult(
            text=content if isinstance(content, str) else None,
            usage=usage if isinstance(usage, dict) else {},
        )


def parse_model_output(
    text: Optional[str],
    *,
    required_keys: Sequence[str] = (),
    list_keys: Sequence[str] = (),
) -> Dict[str, Any]:
    if not text or not text.strip():
        raise EmptyResponseError("Empty response from AI model")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("AI model returned invalid JSON: %s", text[:500])
        raise MalformedResponseError("Invalid JSON response from AI model") from exc

    if not isinstance(parsed, dict):
        raise SchemaViolationError("AI model response is not a JSON object")

    missing = [key for key in required_keys if parsed.get(key) in (None, "")]
    if missing:
        raise SchemaViolationError(
            "Invalid response structure from AI model",
            details={"missing": missing},
        )

    not_lists = [key for key in list_keys if not isinstance(parsed.get(key), list)]
    if not_lists:
        raise SchemaViolationError(
            "Invalid response structure from AI model",
            details={"not_a_list": not_lists},
        )
    return parsed


def invoke_model(
    transport: ModelTransport,
    prompt: str,
    response_schema: Dict[str, Any],
    config: AIModelConfig,
    *,
    required_keys: Optional[Sequence[str]] = None,
    list_keys: Sequence[str] = (),
    image: Optional[InlineImage] = None,
) -> ModelInvocation:
    """Call the model and parse its JSON output.

    Without explicit ``required_keys`` the schema's own ``required`` list is enforced.
    """
    if required_keys is None:
        required_keys = response_schema.get("required", ())
    started = time.monotonic()
    result = transport.generate(prompt, response_schema, config, image=image)
    elapsed_ms = int((time.monotonic() - started) * 1000)
    data = parse_model_output(
        result.text,
        required_keys=required_keys,
        list_keys=list_keys,
    )
    return ModelInvocation(data=data, usage=result.usage, response_time_ms=elapsed_ms)


__all__ = [
    "InlineImage",
    "ModelResult",
    "ModelInvocation",
    "ModelTransport",
    "AIProxyClient",
    "parse_model_output",
    "invoke_model",
]
