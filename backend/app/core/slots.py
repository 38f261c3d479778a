"""Domain-card slot allocator.

Slots are derived from the level history every time:

- level 1 grants 2 slots
- every level 2..character_level grants 1 slot, or 2 when that level's
  recorded choices include DOMAIN_CARD

A card of level L may sit in any slot of level >= L. Selected cards are
placed greedily in ascending card-level order, each taking the lowest free
slot it can use. Processing low cards first means a high card never takes a
low slot that only a low card could have used, so if any valid placement
exists the greedy one finds it. Do not reorder (e.g. by selection time).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from app.core.progression import MAX_LEVEL, LevelChoice, LevelHistory

LEVEL_ONE_SLOTS = 2


def base_slots_by_level(character_level: int, history: LevelHistory) -> dict[int, int]:
    """Slot count per level 1..character_level."""
    slots = {1: LEVEL_ONE_SLOTS}
    for level in range(2, min(character_level, MAX_LEVEL) + 1):
        slots[level] = 2 if LevelChoice.DOMAIN_CARD in history.get(level, ()) else 1
    return slots


@dataclass
class SlotAllocation:
    slots: dict[int, int]
    used: dict[int, int]
    # slot level taken by each card, aligned with sorted(card_levels); None = no slot
    placements: list[int | None] = field(default_factory=list)

    @property
    def total_slots(self) -> int:
        return sum(self.slots.values())

    @property
    def used_slots(self) -> int:
        return sum(self.used.values())

    @property
    def unplaced(self) -> int:
        return sum(1 for p in self.placements if p is None)

    def free_at(self, level: int) -> int:
        return self.slots.get(level, 0) - self.used.get(level, 0)

    def free_at_or_above(self, level: int) -> int:
        return sum(self.free_at(lvl) for lvl in self.slots if lvl >= level)

    def can_fit(self, card_level: int) -> bool:
        """True if one more card of card_level has a free slot."""
        return self.free_at_or_above(card_level) > 0


def allocate(base_slots: Mapping[int, int], card_levels: Iterable[int]) -> SlotAllocation:
    """Place cards into slots, lowest card level first, lowest usable slot first."""
    slots = dict(base_slots)
    used = {level: 0 for level in slots}
    slot_levels = sorted(slots)
    placements: list[int | None] = []

    for card_level in sorted(card_levels):
        target = None
        for slot_level in slot_levels:
            if slot_level >= card_level and used[slot_level] < slots[slot_level]:
                target = slot_level
                break
        if target is not None:
            used[target] += 1
        placements.append(target)

    return SlotAllocation(slots=slots, used=used, placements=placements)


def assign_cards(
    base_slots: Mapping[int, int], cards: Mapping[str, int]
) -> tuple[SlotAllocation, dict[str, int | None]]:
    """Allocate named cards. Returns the allocation and card name -> slot level."""
    ordered = sorted(cards.items(), key=lambda item: (item[1], item[0]))
    allocation = allocate(base_slots, [level for _, level in ordered])
    by_name = {name: slot for (name, _), slot in zip(ordered, allocation.placements)}
    return allocation, by_name


def can_add_card(
    base_slots: Mapping[int, int], card_levels: Iterable[int], new_card_level: int
) -> bool:
    """Eligibility: after placing the current cards, is a slot >= new_card_level left?"""
    return allocate(base_slots, card_levels).can_fit(new_card_level)


def available_slots_by_card_level(allocation: SlotAllocation, max_card_level: int) -> dict[int, int]:
    """Free slots a hypothetical card of each level 1..max_card_level could draw from."""
    return {
        level: allocation.free_at_or_above(level)
        for level in range(1, min(max_card_level, MAX_LEVEL) + 1)
    }


def actual_slots_by_level(allocation: SlotAllocation) -> dict[int, dict]:
    """Per slot level: total, used, available and whether a card of that level fits."""
    return {
        level: {
            "total": allocation.slots[level],
            "used": allocation.used[level],
            "available": allocation.free_at(level),
            "can_select_this_level": allocation.can_fit(level),
        }
        for level in sorted(allocation.slots)
    }
