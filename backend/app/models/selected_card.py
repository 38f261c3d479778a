"""Selected domain cards - which catalog abilities a character has taken."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class SelectedCard(Base):
    __tablename__ = "selected_cards"
    __table_args__ = (UniqueConstraint("character_id", "card_name", name="uq_selected_card"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    card_name: Mapped[str] = mapped_column(String(100))  # resolves via the ability catalog

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
