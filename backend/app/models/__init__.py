"""Database models package."""

from app.models.character import Character, Experience
from app.models.character_level import CharacterLevel, CharacterLevelChoice
from app.models.selected_card import SelectedCard

__all__ = ["Character", "Experience", "CharacterLevel", "CharacterLevelChoice", "SelectedCard"]
