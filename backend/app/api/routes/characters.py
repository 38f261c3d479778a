"""Character endpoints - create, fetch, delete, mark traits, set level and reset to level 1."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.schemas.character import (
    CharacterCreate,
    CharacterLevelUpdate,
    CharacterResetResponse,
    CharacterState,
    TraitMarksUpdate,
)
from app.services.character_service import character_service
from app.services.progression_service import progression_service

router = APIRouter()


@router.post("/", response_model=CharacterState, status_code=201)
async def create_character(data: CharacterCreate, db: AsyncSession = Depends(get_db)):
    """Create a character at the given level with its starting Experiences."""
    character = await character_service.create_character(db, data)
    return await character_service.to_state(db, character)


@router.get("/{character_id}", response_model=CharacterState)
async def get_character(character_id: int, db: AsyncSession = Depends(get_db)):
    character = await character_service.get_character(db, character_id)
    return await character_service.to_state(db, character)


@router.delete("/{character_id}", status_code=204)
async def delete_character(character_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a character and all associated records."""
    await character_service.delete_character(db, character_id)


@router.patch("/{character_id}/level", response_model=CharacterState)
async def set_level(
    character_id: int, data: CharacterLevelUpdate, db: AsyncSession = Depends(get_db)
):
    """Set the level cap. Lowering it removes advancement records above the new level."""
    character = await progression_service.set_level(db, character_id, data.level)
    return await character_service.to_state(db, character)


@router.post("/{character_id}/reset", response_model=CharacterResetResponse)
async def reset_to_level_1(character_id: int, db: AsyncSession = Depends(get_db)):
    """Back to level 1: no level history, no cards, first two Experiences kept."""
    character = await progression_service.reset_to_level_1(db, character_id)
    return CharacterResetResponse(
        message="Character reset to level 1",
        character=await character_service.to_state(db, character),
    )


@router.patch("/{character_id}/traits", response_model=CharacterState)
async def mark_traits(
    character_id: int, data: TraitMarksUpdate, db: AsyncSession = Depends(get_db)
):
    """Set which traits are marked, e.g. after a TRAIT_BONUS pick."""
    character = await character_service.mark_traits(db, character_id, data.marked_traits)
    return await character_service.to_state(db, character)
