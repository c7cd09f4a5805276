from __future__ import annotations

from dataclasses import dataclass

from app.core.ai.client import ModelTransport
from app.core.ai.model_config import AIModelConfig
from app.core.ai.prompt_logger import PromptLogger


@dataclass(frozen=True)
class AIContext:
    """Collaborators every model-backed function needs."""

    transport: ModelTransport
    config: AIModelConfig
    prompt_logger: PromptLogger


__all__ = ["AIContext"]
