from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from app.core.config import Settings


@dataclass(frozen=True)
class AIModelConfig:
    model: str = "gemini-2.5-flash"
    temperature: float = 0.25
    max_output_tokens: int = 24000
    include_thoughts: bool = True
    thinking_budget: int = 1250

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIModelConfig":
        return cls(
            model=settings.ai_model,
            temperature=settings.ai_temperature,
            max_output_tokens=settings.ai_max_output_tokens,
            include_thoughts=settings.ai_include_thoughts,
            thinking_budget=settings.ai_thinking_budget,
        )

    def generation_config(self, response_schema: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
            "response_mime_type": "application/json",
            "thinking_config": {
                "include_thoughts": self.include_thoughts,
                "thinking_budget": self.thinking_budget,
            },
            "response_schema": response_schema,
        }

    def as_log_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
            "thinking_config": {
                "include_thoughts": self.include_thoughts,
                "thinking_budget": self.thinking_budget,
            },
        }


__all__ = ["AIModelConfig"]
