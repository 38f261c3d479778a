"""Progression endpoints - next eligible level, bracket usage, history and level-up."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.schemas.progression import (
    AdvanceLevelRequest,
    AdvanceLevelResponse,
    LevelHistoryEntry,
    ProgressionView,
)
from app.services.progression_service import progression_service

router = APIRouter()


@router.get("/{character_id}/progression", response_model=ProgressionView)
async def get_progression(character_id: int, db: AsyncSession = Depends(get_db)):
    return await progression_service.get_progression_view(db, character_id)


@router.get("/{character_id}/history", response_model=list[LevelHistoryEntry])
async def get_level_history(character_id: int, db: AsyncSession = Depends(get_db)):
    """Completed levels with the choices recorded for each."""
    return await progression_service.get_level_history(db, character_id)


@router.post("/{character_id}/advance", response_model=AdvanceLevelResponse, status_code=201)
async def advance_level(
    character_id: int, req: AdvanceLevelRequest, db: AsyncSession = Depends(get_db)
):
    """Complete the next eligible level with two choices."""
    return await progression_service.advance_level(
        db,
        character_id,
        req.choices,
        new_experience=req.new_experience,
        target_level=req.target_level,
    )
