"""Progression service - level history, advancement, level changes and reset.

Every read rebuilds the level history from the character_levels table and
hands it to the pure rules in app.core.progression; nothing derived is stored
except max_hp, which is recomputed from the full history on each write.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import progression as rules
from app.core.errors import ValidationError
from app.core.progression import LevelChoice
from app.db.database import unit_of_work
from app.models.character import DEFAULT_LEVEL, Character, Experience
from app.models.character_level import CharacterLevel, CharacterLevelChoice
from app.models.selected_card import SelectedCard
from app.schemas.progression import (
    AdvanceLevelResponse,
    LevelHistoryEntry,
    OptionUsage,
    ProgressionView,
)
from app.services.catalog_service import catalog_service
from app.services.character_service import character_service

logger = logging.getLogger(__name__)

# Experiences that survive a reset (the two written at creation)
KEPT_EXPERIENCES_ON_RESET = 2


class ProgressionService:
    @staticmethod
    async def load_levels(db: AsyncSession, character_id: int) -> list[CharacterLevel]:
        """Completed levels, ascending, with their choices loaded."""
        result = await db.execute(
            select(CharacterLevel)
            .where(CharacterLevel.character_id == character_id)
            .order_by(CharacterLevel.level)
        )
        return list(result.scalars().all())

    @staticmethod
    def history_of(levels: Sequence[CharacterLevel]) -> dict[int, list[LevelChoice]]:
        return {record.level: record.choice_kinds() for record in levels}

    @staticmethod
    async def load_history(db: AsyncSession, character_id: int) -> dict[int, list[LevelChoice]]:
        levels = await ProgressionService.load_levels(db, character_id)
        return ProgressionService.history_of(levels)

    @staticmethod
    async def get_level_history(db: AsyncSession, character_id: int) -> list[LevelHistoryEntry]:
        await character_service.get_character(db, character_id)
        levels = await ProgressionService.load_levels(db, character_id)
        return [
            LevelHistoryEntry(
                level=record.level,
                choices=record.choice_kinds(),
                created_at=record.created_at,
            )
            for record in levels
        ]

    @staticmethod
    async def get_progression_view(db: AsyncSession, character_id: int) -> ProgressionView:
        character = await character_service.get_character(db, character_id)
        history = await ProgressionService.load_history(db, character_id)

        next_level = rules.next_eligible_level(character.level, history.keys())
        # Nothing to complete: show the bracket a level raise would enter
        usage_level = next_level if next_level is not None else character.level + 1
        start = rules.bracket_start(usage_level)

        bracket_usage = []
        if start is not None:
            used = rules.bracket_usage(usage_level, history)
            remaining = rules.remaining_in_bracket(usage_level, history)
            bracket_usage = [
                OptionUsage(
                    choice=option.choice,
                    label=option.label,
                    description=option.description,
                    max_per_bracket=option.max_per_bracket,
                    used=used[option.choice],
                    remaining=remaining[option.choice],
                )
                for option in rules.OPTION_CATALOG.values()
            ]

        logger.debug(
            "Progression view for character %d: next=%s bracket=%s", character_id, next_level, start
        )
        return ProgressionView(
            character_id=character.id,
            level=character.level,
            next_eligible_level=next_level,
            bracket_start=start,
            requires_new_experience=(
                next_level is not None and rules.requires_new_experience(next_level)
            ),
            completed_levels=sorted(history),
            bracket_usage=bracket_usage,
        )

    @staticmethod
    async def advance_level(
        db: AsyncSession,
        character_id: int,
        choices: Sequence[LevelChoice],
        new_experience: str | None = None,
        target_level: int | None = None,
    ) -> AdvanceLevelResponse:
        """Record the two choices for the next eligible level.

        All checks run against freshly loaded history before anything is
        written; the writes then happen together or not at all.
        """
        character = await character_service.get_character(db, character_id, for_update=True)
        history = await ProgressionService.load_history(db, character_id)
        expected = rules.next_eligible_level(character.level, history.keys())

        try:
            if target_level is not None and target_level in history:
                raise ValidationError(
                    f"Level {target_level} is already completed", target_level=target_level
                )
            if target_level is not None and target_level > character.level:
                raise ValidationError(
                    f"Level {target_level} exceeds character level {character.level}",
                    target_level=target_level,
                    character_level=character.level,
                )
            if expected is None:
                raise ValidationError(
                    f"No level up to {character.level} is waiting for advancement",
                    character_level=character.level,
                )
            if target_level is not None and target_level != expected:
                raise ValidationError(
                    f"Next level to complete is {expected}",
                    target_level=target_level,
                    expected_level=expected,
                )
            rules.validate_choices(expected, history, choices, new_experience)
        except ValidationError as exc:
            logger.warning("Advancement rejected for character %d: %s", character_id, exc.message)
            raise

        choices = [LevelChoice(c) for c in choices]
        history[expected] = choices
        traits_cleared = rules.resets_marked_traits(expected)
        experience_text = (
            new_experience.strip() if rules.requires_new_experience(expected) else None
        )

        try:
            async with unit_of_work(db):
                db.add(
                    CharacterLevel(
                        character_id=character_id,
                        level=expected,
                        choices=[
                            CharacterLevelChoice(position=i, choice=choice)
                            for i, choice in enumerate(choices)
                        ],
                    )
                )
                character.max_hp = rules.max_hp(
                    catalog_service.base_hp(character.class_name), history
                )
                if traits_cleared:
                    character.clear_marked_traits()
                if experience_text:
                    db.add(Experience(character_id=character_id, text=experience_text))
        except IntegrityError as exc:
            # Another writer completed the same level first
            raise ValidationError(
                f"Level {expected} is already completed", target_level=expected
            ) from exc

        logger.info(
            "Character %d completed level %d with %s",
            character_id, expected, ", ".join(c.value for c in choices),
        )
        return AdvanceLevelResponse(
            character_id=character_id,
            level=expected,
            choices=choices,
            max_hp=character.max_hp,
            traits_cleared=traits_cleared,
            new_experience=experience_text,
        )

    @staticmethod
    async def delete_levels_above(db: AsyncSession, character_id: int, level: int) -> int:
        """Delete CharacterLevel records (and choices) above `level`. Returns how many."""
        result = await db.execute(
            select(CharacterLevel.id).where(
                CharacterLevel.character_id == character_id,
                CharacterLevel.level > level,
            )
        )
        level_ids = list(result.scalars().all())
        if not level_ids:
            return 0

        await db.execute(
            delete(CharacterLevelChoice).where(
                CharacterLevelChoice.character_level_id.in_(level_ids)
            )
        )
        await db.execute(delete(CharacterLevel).where(CharacterLevel.id.in_(level_ids)))
        return len(level_ids)

    @staticmethod
    async def set_level(db: AsyncSession, character_id: int, level: int) -> Character:
        """Owner sets the level directly. Lowering drops history above the new cap."""
        if not rules.MIN_LEVEL <= level <= rules.MAX_LEVEL:
            raise ValidationError(
                f"Level must be between {rules.MIN_LEVEL} and {rules.MAX_LEVEL}",
                target_level=level,
            )
        character = await character_service.get_character(db, character_id, for_update=True)
        previous = character.level

        async with unit_of_work(db):
            removed = 0
            if level < previous:
                removed = await ProgressionService.delete_levels_above(db, character_id, level)
            character.level = level
            history = await ProgressionService.load_history(db, character_id)
            character.max_hp = rules.max_hp(catalog_service.base_hp(character.class_name), history)

        logger.info(
            "Character %d level %d -> %d (%d level record(s) removed)",
            character_id, previous, level, removed,
        )
        return character

    @staticmethod
    async def reset_to_level_1(db: AsyncSession, character_id: int) -> Character:
        """Drop all progression and cards; keep the first two Experiences."""
        character = await character_service.get_character(db, character_id, for_update=True)

        async with unit_of_work(db):
            await ProgressionService.delete_levels_above(db, character_id, DEFAULT_LEVEL)
            await db.execute(delete(SelectedCard).where(SelectedCard.character_id == character_id))

            result = await db.execute(
                select(Experience.id)
                .where(Experience.character_id == character_id)
                .order_by(Experience.id)
                .offset(KEPT_EXPERIENCES_ON_RESET)
            )
            extra_ids = list(result.scalars().all())
            if extra_ids:
                await db.execute(delete(Experience).where(Experience.id.in_(extra_ids)))

            character.level = DEFAULT_LEVEL
            character.max_hp = catalog_service.base_hp(character.class_name)

        logger.info("Character %d reset to level %d", character_id, DEFAULT_LEVEL)
        return character

    @staticmethod
    async def recalculate_max_hp(db: AsyncSession, character: Character) -> int:
        """Recompute max_hp from class base and full history. Returns the new value."""
        history = await ProgressionService.load_history(db, character.id)
        character.max_hp = rules.max_hp(catalog_service.base_hp(character.class_name), history)
        return character.max_hp


progression_service = ProgressionService()
