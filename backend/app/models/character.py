"""Character model - identity, level cap and derived hit points."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.progression import TRAITS
from app.db.database import Base

# Starting level for every new (or reset) character
DEFAULT_LEVEL = 1

# Bonus of a freshly written Experience
DEFAULT_EXPERIENCE_BONUS = 2


class Character(Base):
    __tablename__ = "characters"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    class_name: Mapped[str] = mapped_column(String(50))  # key into the class catalog

    # Set directly by the owner; ceiling for advancement and card levels
    level: Mapped[int] = mapped_column(Integer, default=DEFAULT_LEVEL)
    # Derived: class base HP + HIT_POINT_SLOT choices
    max_hp: Mapped[int] = mapped_column(Integer, default=0)

    # Trait marks, cleared when reaching level 5 and 8
    agility_marked: Mapped[bool] = mapped_column(Boolean, default=False)
    strength_marked: Mapped[bool] = mapped_column(Boolean, default=False)
    finesse_marked: Mapped[bool] = mapped_column(Boolean, default=False)
    instinct_marked: Mapped[bool] = mapped_column(Boolean, default=False)
    presence_marked: Mapped[bool] = mapped_column(Boolean, default=False)
    knowledge_marked: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    def marked_traits(self) -> list[str]:
        return [trait for trait in TRAITS if getattr(self, f"{trait}_marked")]

    def clear_marked_traits(self) -> None:
        for trait in TRAITS:
            setattr(self, f"{trait}_marked", False)


class Experience(Base):
    """A free-text Experience. The first two are written at creation."""
    __tablename__ = "experiences"

    id: Mapped[int] = mapped_column(primary_key=True)  # also the creation order
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    text: Mapped[str] = mapped_column(Text)
    bonus: Mapped[int] = mapped_column(Integer, default=DEFAULT_EXPERIENCE_BONUS)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
