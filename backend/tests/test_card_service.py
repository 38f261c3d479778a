"""Tests for the card service - selection, deselection and slot views (direct DB session)."""

import pytest

from app.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.core.progression import LevelChoice
from app.models.selected_card import SelectedCard
from app.services.card_service import CardService, card_service
from app.services.progression_service import progression_service

T = LevelChoice.TRAIT_BONUS
DC = LevelChoice.DOMAIN_CARD
ST = LevelChoice.STRESS_SLOT


async def test_select_card(db, make_character):
    character = await make_character(level=1)
    card = await card_service.select_card(db, character.id, "Book of Ava")
    assert card.card_name == "Book of Ava"
    assert card.level == 1
    assert card.domain == "Codex"

    selected = await card_service.list_selected_cards(db, character.id)
    assert [c.card_name for c in selected] == ["Book of Ava"]


async def test_select_card_reduces_slot_pool(db, make_character):
    character = await make_character(level=2)
    before = await card_service.get_slot_view(db, character.id)
    assert before.total_slots == 3
    assert before.used_slots == 0

    await card_service.select_card(db, character.id, "Book of Sitil")

    after = await card_service.get_slot_view(db, character.id)
    assert after.used_slots == 1
    assert after.actual_slots_by_level[2].used == 1
    assert after.actual_slots_by_level[2].available == 0
    assert after.available_slots_by_level == {1: 2, 2: 0}


async def test_select_card_twice_rejected(db, make_character):
    character = await make_character(level=1)
    await card_service.select_card(db, character.id, "Book of Ava")
    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Ava")
    assert "already selected" in exc_info.value.message


async def test_select_unknown_card(db, make_character):
    character = await make_character(level=1)
    with pytest.raises(NotFoundError):
        await card_service.select_card(db, character.id, "Not A Real Card")


async def test_select_card_above_character_level(db, make_character):
    character = await make_character(level=2)
    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Korvax")
    assert exc_info.value.context["card_level"] == 3
    assert exc_info.value.context["character_level"] == 2


async def test_select_card_no_free_slot(db, make_character):
    character = await make_character(level=1)
    await card_service.select_card(db, character.id, "Book of Ava")
    await card_service.select_card(db, character.id, "Book of Illiat")

    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Tyfar")
    assert exc_info.value.context["available_slots_by_level"] == {1: 0}


async def test_low_cards_fill_higher_slots(db, make_character):
    """Level-1 cards spill into level-2 and level-3 slots once level 1 is full."""
    character = await make_character(level=3)
    for name in ("Book of Ava", "Book of Illiat", "Book of Tyfar", "Bolt Beacon"):
        await card_service.select_card(db, character.id, name)

    view = await card_service.get_slot_view(db, character.id)
    assert view.used_slots == 4
    assert view.available_slots_by_level == {1: 0, 2: 0, 3: 0}

    with pytest.raises(ValidationError):
        await card_service.select_card(db, character.id, "Mending Touch")


async def test_high_card_blocked_when_low_cards_took_its_slot(db, make_character):
    character = await make_character(level=2)
    for name in ("Book of Ava", "Book of Illiat", "Book of Tyfar"):
        await card_service.select_card(db, character.id, name)

    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Sitil")
    assert exc_info.value.context["card_level"] == 2


async def test_domain_card_choice_adds_slot(db, make_character):
    character = await make_character(level=2)
    await progression_service.advance_level(db, character.id, [DC, T], new_experience="Sailor")

    view = await card_service.get_slot_view(db, character.id)
    assert view.total_slots == 4
    assert view.actual_slots_by_level[2].total == 2

    await card_service.select_card(db, character.id, "Book of Sitil")
    await card_service.select_card(db, character.id, "Book of Vagras")
    await card_service.select_card(db, character.id, "Book of Ava")
    await card_service.select_card(db, character.id, "Book of Illiat")

    view = await card_service.get_slot_view(db, character.id)
    assert view.used_slots == 4
    assert not any(level.can_select_this_level for level in view.actual_slots_by_level.values())


async def test_deselect_card(db, make_character):
    character = await make_character(level=1)
    await card_service.select_card(db, character.id, "Book of Ava")
    await card_service.select_card(db, character.id, "Book of Illiat")

    await card_service.deselect_card(db, character.id, "Book of Ava")

    view = await card_service.get_slot_view(db, character.id)
    assert view.used_slots == 1
    await card_service.select_card(db, character.id, "Book of Tyfar")


async def test_deselect_card_not_selected(db, make_character):
    character = await make_character(level=1)
    with pytest.raises(ValidationError) as exc_info:
        await card_service.deselect_card(db, character.id, "Book of Ava")
    assert exc_info.value.context == {"card_name": "Book of Ava"}


async def test_lowered_level_reports_unassigned_cards(db, make_character):
    character = await make_character(level=2)
    for name in ("Book of Ava", "Book of Illiat", "Book of Sitil"):
        await card_service.select_card(db, character.id, name)

    await progression_service.set_level(db, character.id, 1)

    view = await card_service.get_slot_view(db, character.id)
    assert view.total_slots == 2
    assert view.unassigned_cards == ["Book of Sitil"]


async def test_available_cards(db, make_character):
    character = await make_character(level=1)
    await card_service.select_card(db, character.id, "Book of Ava")

    cards = {c.name: c for c in await card_service.list_available_cards(db, character.id)}
    assert set(cards) == {
        "Book of Ava", "Book of Illiat", "Book of Tyfar",
        "Bolt Beacon", "Mending Touch", "Reassurance",
    }
    assert cards["Book of Ava"].selected is True
    assert cards["Book of Ava"].can_select is False
    assert cards["Bolt Beacon"].can_select is True


async def test_enforce_class_domains(db, make_character, monkeypatch):
    character = await make_character(level=1)
    # Off by default: any domain is accepted
    await card_service.select_card(db, character.id, "Whirlwind")

    monkeypatch.setattr(settings, "ENFORCE_CLASS_DOMAINS", True)
    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Rune Ward")
    assert exc_info.value.context["domains"] == ["Codex", "Splendor"]


async def test_no_new_selection_while_cards_lack_a_slot(db, make_character):
    character = await make_character(level=3)
    await card_service.select_card(db, character.id, "Book of Korvax")
    await progression_service.set_level(db, character.id, 1)

    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Ava")
    assert exc_info.value.context["unassigned_cards"] == ["Book of Korvax"]

    cards = await card_service.list_available_cards(db, character.id)
    assert cards
    assert not any(card.can_select for card in cards)

    await card_service.deselect_card(db, character.id, "Book of Korvax")
    await card_service.select_card(db, character.id, "Book of Ava")
    view = await card_service.get_slot_view(db, character.id)
    assert view.used_slots == 1
    assert view.unassigned_cards == []


async def test_concurrent_card_write_is_rejected(db, make_character, monkeypatch):
    """A card selected by another writer after the selection was read fails cleanly."""
    character = await make_character(level=1)
    db.add(SelectedCard(character_id=character.id, card_name="Book of Ava"))
    await db.commit()

    async def _stale_selection(session, character_id):
        return []

    monkeypatch.setattr(CardService, "list_selected", staticmethod(_stale_selection))
    with pytest.raises(ValidationError) as exc_info:
        await card_service.select_card(db, character.id, "Book of Ava")
    assert "already selected" in exc_info.value.message
    monkeypatch.undo()

    selected = await card_service.list_selected(db, character.id)
    assert [card.card_name for card in selected] == ["Book of Ava"]
