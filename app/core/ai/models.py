from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text, Uuid, func

from app.database.base import Base, JSONDocument


class PromptLog(Base):
    __tablename__ = "prompt_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category = Column(String, nullable=False, default="travel", index=True)  # travel|food
    user_id = Column(String, nullable=False, index=True)
    prompt_type = Column(String, nullable=False, index=True)
    session_id = Column(String, nullable=True, index=True)

    user_request = Column(Text, nullable=False)
    prompt_text = Column(Text, nullable=False)
    llm_response = Column(Text, nullable=False)

    token_usage = Column(JSONDocument, nullable=False, default=dict)
    ai_config = Column(JSONDocument, nullable=False, default=dict)
    performance = Column(JSONDocument, nullable=False, default=dict)
    food_metadata = Column(JSONDocument, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AIErrorLog(Base):
    __tablename__ = "ai_error_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    prompt_type = Column(String, nullable=False)
    session_id = Column(String, nullable=True)
    error_code = Column(String, nullable=False)
    error_message = Column(Text, nullable=False)
    user_request = Column(Text, nullable=False)
    prompt_text = Column(Text, nullable=False)
    performance = Column(JSONDocument, nullable=False, default=dict)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class UsageStat(Base):
    __tablename__ = "usage_stats"

    # "<user_id>_<YYYY-MM-DD>"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(String, nullable=False)
    total_tokens = Column(Integer, nullable=False, default=0)
    prompt_tokens = Column(Integer, nullable=False, default=0)
    completion_tokens = Column(Integer, nullable=False, default=0)
    image_analysis_count = Column(Integer, nullable=False, default=0)
    request_count = Column(Integer, nullable=False, default=0)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


__all__ = ["PromptLog", "AIErrorLog", "UsageStat"]
