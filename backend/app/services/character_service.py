"""Character service - create, fetch, mark traits and delete characters."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.core.progression import TRAITS
from app.db.database import unit_of_work
from app.models.character import Character, Experience
from app.models.character_level import CharacterLevel, CharacterLevelChoice
from app.models.selected_card import SelectedCard
from app.schemas.character import CharacterCreate, CharacterState
from app.services.catalog_service import catalog_service

logger = logging.getLogger(__name__)


class CharacterService:
    @staticmethod
    async def get_character(
        db: AsyncSession, character_id: int, for_update: bool = False
    ) -> Character:
        """Fetch a character or raise NotFoundError.

        for_update locks the row so concurrent writers for the same character
        run their recompute-then-write one after another.
        """
        stmt = select(Character).where(Character.id == character_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        character = result.scalar_one_or_none()
        if character is None:
            raise NotFoundError("Character not found", character_id=character_id)
        return character

    @staticmethod
    async def list_experiences(db: AsyncSession, character_id: int) -> list[Experience]:
        """Experiences in creation order."""
        result = await db.execute(
            select(Experience)
            .where(Experience.character_id == character_id)
            .order_by(Experience.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_character(db: AsyncSession, data: CharacterCreate) -> Character:
        cls = catalog_service.get_class(data.class_name)
        if cls is None:
            raise NotFoundError("Class not found", class_name=data.class_name)

        async with unit_of_work(db):
            character = Character(
                name=data.name,
                class_name=cls.name,
                level=data.level,
                max_hp=cls.hp,
            )
            db.add(character)
            await db.flush()
            for text in data.experiences:
                if text.strip():
                    db.add(Experience(character_id=character.id, text=text.strip()))

        logger.info("Created character %d (%s, level %d)", character.id, cls.name, character.level)
        return character

    @staticmethod
    async def delete_character(db: AsyncSession, character_id: int) -> None:
        """Delete a character and everything it owns."""
        character = await CharacterService.get_character(db, character_id, for_update=True)
        level_ids = select(CharacterLevel.id).where(CharacterLevel.character_id == character_id)

        async with unit_of_work(db):
            await db.execute(
                delete(CharacterLevelChoice)
                .where(CharacterLevelChoice.character_level_id.in_(level_ids))
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                delete(CharacterLevel)
                .where(CharacterLevel.character_id == character_id)
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                delete(SelectedCard)
                .where(SelectedCard.character_id == character_id)
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                delete(Experience)
                .where(Experience.character_id == character_id)
                .execution_options(synchronize_session=False)
            )
            await db.delete(character)

        logger.info("Deleted character %d", character_id)

    @staticmethod
    async def mark_traits(db: AsyncSession, character_id: int, traits: list[str]) -> Character:
        """Replace the set of marked traits. Marks clear again on reaching level 5 and 8."""
        character = await CharacterService.get_character(db, character_id, for_update=True)

        wanted = {trait.strip().lower() for trait in traits}
        unknown = sorted(wanted.difference(TRAITS))
        if unknown:
            raise ValidationError(
                f"Unknown trait(s): {', '.join(unknown)}", traits=unknown, allowed=list(TRAITS)
            )

        async with unit_of_work(db):
            for trait in TRAITS:
                setattr(character, f"{trait}_marked", trait in wanted)

        logger.info(
            "Character %d marked traits: %s",
            character_id, ", ".join(character.marked_traits()) or "none",
        )
        return character

    @staticmethod
    async def to_state(db: AsyncSession, character: Character) -> CharacterState:
        """Convert ORM model to response schema with its experiences."""
        await db.refresh(character)
        experiences = await CharacterService.list_experiences(db, character.id)
        return CharacterState(
            id=character.id,
            name=character.name,
            class_name=character.class_name,
            level=character.level,
            max_hp=character.max_hp,
            marked_traits=character.marked_traits(),
            experiences=[e.text for e in experiences],
            created_at=character.created_at,
        )


character_service = CharacterService()
