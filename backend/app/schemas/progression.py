"""Progression (level-up) Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.core.progression import LevelChoice


class AdvanceLevelRequest(BaseModel):
    # Count is checked by the rules so the caller gets a structured error
    choices: list[LevelChoice]
    new_experience: str | None = Field(default=None, max_length=200)
    # Optional; only honored if it equals the recomputed next eligible level
    target_level: int | None = None


class LevelHistoryEntry(BaseModel):
    level: int
    choices: list[LevelChoice]
    created_at: datetime | None = None


class AdvanceLevelResponse(BaseModel):
    character_id: int
    level: int
    choices: list[LevelChoice]
    max_hp: int
    traits_cleared: bool
    new_experience: str | None = None


class OptionUsage(BaseModel):
    choice: LevelChoice
    label: str
    description: str
    max_per_bracket: int
    used: int
    remaining: int


class ProgressionView(BaseModel):
    character_id: int
    level: int
    next_eligible_level: int | None
    bracket_start: int | None
    requires_new_experience: bool
    completed_levels: list[int]
    bracket_usage: list[OptionUsage]
