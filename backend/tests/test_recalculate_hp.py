"""Tests for the recalculate_hp maintenance script."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.progression import LevelChoice
from app.models.character import Character
from app.services.progression_service import progression_service
from recalculate_hp import recalculate_all


def _session_factory(db):
    return async_sessionmaker(db.bind, class_=AsyncSession, expire_on_commit=False)


async def _drifted_character(db, make_character):
    character = await make_character(level=3, class_name="Seraph")
    await progression_service.advance_level(
        db, character.id,
        [LevelChoice.HIT_POINT_SLOT, LevelChoice.TRAIT_BONUS],
        new_experience="Sailor",
    )
    character.max_hp = 1  # drifted from the rules
    await db.commit()
    return character.id


async def _stored_hp(db, character_id):
    async with _session_factory(db)() as session:
        result = await session.execute(select(Character.max_hp).where(Character.id == character_id))
        return result.scalar_one()


async def test_recalculate_fixes_drifted_hp(db, make_character):
    character_id = await _drifted_character(db, make_character)

    changed = await recalculate_all(session_factory=_session_factory(db))

    assert changed == 1
    assert await _stored_hp(db, character_id) == 8


async def test_recalculate_dry_run_changes_nothing(db, make_character):
    character_id = await _drifted_character(db, make_character)

    changed = await recalculate_all(session_factory=_session_factory(db), dry_run=True)

    assert changed == 1
    assert await _stored_hp(db, character_id) == 1
