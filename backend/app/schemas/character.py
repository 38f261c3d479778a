"""Character-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class CharacterCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    class_name: str = Field(min_length=1, max_length=50)
    level: int = Field(default=1, ge=1, le=10)
    experiences: list[str] = Field(default_factory=list)


class CharacterLevelUpdate(BaseModel):
    level: int = Field(ge=1, le=10)


class TraitMarksUpdate(BaseModel):
    # Full set of marked traits; anything not listed is unmarked
    marked_traits: list[str] = Field(default_factory=list)


class CharacterState(BaseModel):
    id: int
    name: str
    class_name: str
    level: int
    max_hp: int
    marked_traits: list[str]
    experiences: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class CharacterResetResponse(BaseModel):
    message: str
    character: CharacterState
