"""Domain-card selection and slot Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class SelectCardRequest(BaseModel):
    card_name: str = Field(min_length=1, max_length=100)


class SelectedCardResponse(BaseModel):
    card_name: str
    level: int | None  # None if the card vanished from the catalog
    domain: str | None
    text: str = ""
    created_at: datetime | None = None


class AvailableCard(BaseModel):
    name: str
    level: int
    domain: str
    text: str
    selected: bool
    can_select: bool


class LevelSlots(BaseModel):
    total: int
    used: int
    available: int
    can_select_this_level: bool


class SlotView(BaseModel):
    character_id: int
    level: int
    total_slots: int
    used_slots: int
    available_slots_by_level: dict[int, int]
    actual_slots_by_level: dict[int, LevelSlots]
    unassigned_cards: list[str] = []
