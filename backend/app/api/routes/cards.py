"""Domain card endpoints - selection, deselection and slot breakdown."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.schemas.cards import AvailableCard, SelectCardRequest, SelectedCardResponse, SlotView
from app.services.card_service import card_service

router = APIRouter()


@router.get("/{character_id}/cards", response_model=list[SelectedCardResponse])
async def list_cards(character_id: int, db: AsyncSession = Depends(get_db)):
    return await card_service.list_selected_cards(db, character_id)


@router.get("/{character_id}/cards/available", response_model=list[AvailableCard])
async def list_available_cards(character_id: int, db: AsyncSession = Depends(get_db)):
    """Cards the character's class can use at its level, with selectability."""
    return await card_service.list_available_cards(db, character_id)


@router.get("/{character_id}/slots", response_model=SlotView)
async def get_slots(character_id: int, db: AsyncSession = Depends(get_db)):
    return await card_service.get_slot_view(db, character_id)


@router.post("/{character_id}/cards", response_model=SelectedCardResponse, status_code=201)
async def select_card(
    character_id: int, req: SelectCardRequest, db: AsyncSession = Depends(get_db)
):
    return await card_service.select_card(db, character_id, req.card_name)


@router.delete("/{character_id}/cards/{card_name}", status_code=204)
async def deselect_card(character_id: int, card_name: str, db: AsyncSession = Depends(get_db)):
    await card_service.deselect_card(db, character_id, card_name)
