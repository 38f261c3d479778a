"""Level history models - one CharacterLevel per completed level, two choices each."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.progression import LevelChoice
from app.db.database import Base


class CharacterLevel(Base):
    """Records that a character completed the advancement for one level (2-10)."""
    __tablename__ = "character_levels"
    __table_args__ = (UniqueConstraint("character_id", "level", name="uq_character_level"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    level: Mapped[int] = mapped_column(Integer)

    choices: Mapped[list["CharacterLevelChoice"]] = relationship(
        back_populates="character_level",
        cascade="all, delete-orphan",
        order_by="CharacterLevelChoice.position",
        lazy="selectin",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    def choice_kinds(self) -> list[LevelChoice]:
        return [c.choice for c in self.choices]


class CharacterLevelChoice(Base):
    """One of the two picks recorded against a CharacterLevel. Immutable once written."""
    __tablename__ = "character_level_choices"

    id: Mapped[int] = mapped_column(primary_key=True)
    character_level_id: Mapped[int] = mapped_column(
        ForeignKey("character_levels.id"), index=True
    )
    position: Mapped[int] = mapped_column(Integer)  # 0 or 1, order picked
    choice: Mapped[LevelChoice] = mapped_column(Enum(LevelChoice, name="level_choice"))

    character_level: Mapped[CharacterLevel] = relationship(back_populates="choices")
