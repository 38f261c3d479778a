"""Card service - domain card selection against freshly derived slots."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core import slots as allocator
from app.core.errors import NotFoundError, ValidationError
from app.db.database import unit_of_work
from app.models.character import Character
from app.models.selected_card import SelectedCard
from app.schemas.cards import AvailableCard, LevelSlots, SelectedCardResponse, SlotView
from app.services.catalog_service import catalog_service
from app.services.character_service import character_service
from app.services.progression_service import progression_service

logger = logging.getLogger(__name__)


class CardService:
    @staticmethod
    async def list_selected(db: AsyncSession, character_id: int) -> list[SelectedCard]:
        result = await db.execute(
            select(SelectedCard)
            .where(SelectedCard.character_id == character_id)
            .order_by(SelectedCard.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def card_levels(selected: list[SelectedCard]) -> dict[str, int]:
        """Selected card name -> catalog level. Cards missing from the catalog are skipped."""
        levels = {}
        for card in selected:
            ability = catalog_service.get_ability(card.card_name)
            if ability is None:
                logger.warning(
                    "Selected card %r of character %d is not in the catalog",
                    card.card_name, card.character_id,
                )
                continue
            levels[card.card_name] = ability.level
        return levels

    @staticmethod
    async def current_allocation(
        db: AsyncSession, character: Character
    ) -> tuple[allocator.SlotAllocation, dict[str, int | None], list[SelectedCard]]:
        """Recompute slots from history and place the current selection."""
        history = await progression_service.load_history(db, character.id)
        base_slots = allocator.base_slots_by_level(character.level, history)
        selected = await CardService.list_selected(db, character.id)
        allocation, placements = allocator.assign_cards(
            base_slots, CardService.card_levels(selected)
        )
        return allocation, placements, selected

    @staticmethod
    async def get_slot_view(db: AsyncSession, character_id: int) -> SlotView:
        character = await character_service.get_character(db, character_id)
        allocation, placements, _ = await CardService.current_allocation(db, character)
        unassigned = sorted(name for name, slot in placements.items() if slot is None)
        if unassigned:
            logger.warning(
                "Character %d has %d card(s) without a slot: %s",
                character_id, len(unassigned), ", ".join(unassigned),
            )

        return SlotView(
            character_id=character.id,
            level=character.level,
            total_slots=allocation.total_slots,
            used_slots=allocation.used_slots,
            available_slots_by_level=allocator.available_slots_by_card_level(
                allocation, character.level
            ),
            actual_slots_by_level={
                level: LevelSlots(**usage)
                for level, usage in allocator.actual_slots_by_level(allocation).items()
            },
            unassigned_cards=unassigned,
        )

    @staticmethod
    async def select_card(db: AsyncSession, character_id: int, card_name: str) -> SelectedCardResponse:
        character = await character_service.get_character(db, character_id, for_update=True)
        ability = catalog_service.get_ability(card_name)
        if ability is None:
            raise NotFoundError("Card not found", card_name=card_name)

        allocation, placements, selected = await CardService.current_allocation(db, character)
        unassigned = sorted(name for name, slot in placements.items() if slot is None)

        try:
            if any(card.card_name == card_name for card in selected):
                raise ValidationError(f"{card_name} is already selected", card_name=card_name)
            if ability.level > character.level:
                raise ValidationError(
                    f"{card_name} is level {ability.level}, "
                    f"character is level {character.level}",
                    card_name=card_name,
                    card_level=ability.level,
                    character_level=character.level,
                )
            if settings.ENFORCE_CLASS_DOMAINS:
                cls = catalog_service.get_class(character.class_name)
                if cls is not None and ability.domain not in cls.domains:
                    raise ValidationError(
                        f"{card_name} is a {ability.domain} card; "
                        f"{cls.name} can use {' and '.join(cls.domains)}",
                        card_name=card_name,
                        domains=cls.domains,
                    )
            if unassigned:
                # Cards left without a slot by a lowered level still count against the pool
                raise ValidationError(
                    f"Deselect cards without a slot first: {', '.join(unassigned)}",
                    card_name=card_name,
                    unassigned_cards=unassigned,
                )
            if not allocation.can_fit(ability.level):
                raise ValidationError(
                    f"No free slot for a level {ability.level} card",
                    card_name=card_name,
                    card_level=ability.level,
                    available_slots_by_level=allocator.available_slots_by_card_level(
                        allocation, character.level
                    ),
                )
        except ValidationError as exc:
            logger.warning("Card selection rejected for character %d: %s", character_id, exc.message)
            raise

        card = SelectedCard(character_id=character_id, card_name=card_name)
        try:
            async with unit_of_work(db):
                db.add(card)
        except IntegrityError as exc:
            raise ValidationError(f"{card_name} is already selected", card_name=card_name) from exc
        await db.refresh(card)

        logger.info("Character %d selected %s (level %d)", character_id, card_name, ability.level)
        return SelectedCardResponse(
            card_name=card.card_name,
            level=ability.level,
            domain=ability.domain,
            text=ability.text,
            created_at=card.created_at,
        )

    @staticmethod
    async def deselect_card(db: AsyncSession, character_id: int, card_name: str) -> None:
        """Remove a selection. Slots are recomputed on the next read."""
        await character_service.get_character(db, character_id, for_update=True)
        result = await db.execute(
            select(SelectedCard).where(
                SelectedCard.character_id == character_id,
                SelectedCard.card_name == card_name,
            )
        )
        card = result.scalar_one_or_none()
        if card is None:
            logger.warning("Deselect rejected for character %d: %s not selected", character_id, card_name)
            raise ValidationError(f"{card_name} is not selected", card_name=card_name)

        async with unit_of_work(db):
            await db.delete(card)
        logger.info("Character %d deselected %s", character_id, card_name)

    @staticmethod
    async def list_selected_cards(db: AsyncSession, character_id: int) -> list[SelectedCardResponse]:
        await character_service.get_character(db, character_id)
        response = []
        for card in await CardService.list_selected(db, character_id):
            ability = catalog_service.get_ability(card.card_name)
            response.append(
                SelectedCardResponse(
                    card_name=card.card_name,
                    level=ability.level if ability else None,
                    domain=ability.domain if ability else None,
                    text=ability.text if ability else "",
                    created_at=card.created_at,
                )
            )
        return response

    @staticmethod
    async def list_available_cards(db: AsyncSession, character_id: int) -> list[AvailableCard]:
        """Cards from the class's domains up to the character's level, flagged for the picker."""
        character = await character_service.get_character(db, character_id)
        cls = catalog_service.get_class(character.class_name)
        if cls is None:
            logger.warning("Character %d has unknown class %r", character_id, character.class_name)
            return []

        allocation, _, selected = await CardService.current_allocation(db, character)
        selected_names = {card.card_name for card in selected}
        return [
            AvailableCard(
                name=ability.name,
                level=ability.level,
                domain=ability.domain,
                text=ability.text,
                selected=ability.name in selected_names,
                can_select=(
                    ability.name not in selected_names
                    and allocation.unplaced == 0
                    and allocation.can_fit(ability.level)
                ),
            )
            for ability in catalog_service.list_abilities(cls.domains, max_level=character.level)
        ]


card_service = CardService()
