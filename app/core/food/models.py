from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text, func

from app.database.base import Base, JSONDocument


class Meal(Base):
    __tablename__ = "meals"

    # "meal_<ms>_<rand>"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    meal_name = Column(String, nullable=False)
    meal_type = Column(String, nullable=False)  # breakfast|lunch|dinner|snack
    ingredients = Column(JSONDocument, nullable=False, default=list)
    nutrition = Column(JSONDocument, nullable=False, default=dict)
    confidence = Column(Float, nullable=True)
    notes = Column(Text, nullable=False, default="")
    image_path = Column(String, nullable=False)
    source = Column(String, nullable=False, default="ai_detection")
    tags = Column(JSONDocument, nullable=False, default=list)
    search_keywords = Column(JSONDocument, nullable=False, default=list)

    timestamp = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class UserStats(Base):
    __tablename__ = "user_stats"

    user_id = Column(String, primary_key=True)
    total_meals = Column(Integer, nullable=False, default=0)
    total_calories = Column(Float, nullable=False, default=0)
    meals_by_type = Column(JSONDocument, nullable=False, default=dict)
    last_meal_at = Column(DateTime(timezone=True), nullable=True)


class AnalysisSession(Base):
    __tablename__ = "analysis_sessions"

    # "food_<ms>_<rand>"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    mode = Column(String, nullable=False)  # meal|label|text
    storage_path = Column(String, nullable=True)
    language = Column(String, nullable=False, default="en")
    unit_system = Column(String, nullable=False, default="metric")
    result = Column(JSONDocument, nullable=False, default=dict)

    saved = Column(Boolean, nullable=False, default=False)
    saved_meal_id = Column(String, nullable=True)
    saved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


__all__ = ["Meal", "UserStats", "AnalysisSession"]
