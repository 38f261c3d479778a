"""Progression rules - advancement brackets, per-bracket option limits, next eligible level.

Everything here is a pure function over a level history:

    history = {2: [LevelChoice.TRAIT_BONUS, LevelChoice.HIT_POINT_SLOT], 3: [...], ...}

i.e. completed level -> the two choices recorded for it, in order.
Nothing is cached; callers rebuild the history from storage on every request.
"""

import enum
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from app.core.errors import ValidationError

MIN_LEVEL = 1
MAX_LEVEL = 10
CHOICES_PER_LEVEL = 2

# First level of each advancement bracket (level 1 is creation, not a bracket)
BRACKET_STARTS = (2, 5, 8)

# Reaching these levels requires a new Experience
NEW_EXPERIENCE_LEVELS = frozenset({2, 5, 8})

# Reaching these levels clears every marked trait
TRAIT_RESET_LEVELS = frozenset({5, 8})

TRAITS = ("agility", "strength", "finesse", "instinct", "presence", "knowledge")


class LevelChoice(str, enum.Enum):
    TRAIT_BONUS = "TRAIT_BONUS"
    HIT_POINT_SLOT = "HIT_POINT_SLOT"
    STRESS_SLOT = "STRESS_SLOT"
    EXPERIENCE_BONUS = "EXPERIENCE_BONUS"
    DOMAIN_CARD = "DOMAIN_CARD"
    EVASION_BONUS = "EVASION_BONUS"


@dataclass(frozen=True)
class AdvancementOption:
    choice: LevelChoice
    label: str
    description: str
    max_per_bracket: int


OPTION_CATALOG: dict[LevelChoice, AdvancementOption] = {
    opt.choice: opt
    for opt in (
        AdvancementOption(
            LevelChoice.TRAIT_BONUS,
            "Character Traits",
            "Gain a +1 bonus to two unmarked character traits and mark them.",
            3,
        ),
        AdvancementOption(
            LevelChoice.HIT_POINT_SLOT,
            "Hit Points",
            "Permanently gain one Hit Point slot.",
            2,
        ),
        AdvancementOption(
            LevelChoice.STRESS_SLOT,
            "Stress Slots",
            "Permanently gain one Stress slot.",
            2,
        ),
        AdvancementOption(
            LevelChoice.EXPERIENCE_BONUS,
            "Experiences",
            "Permanently gain a +1 bonus to two Experiences.",
            1,
        ),
        AdvancementOption(
            LevelChoice.DOMAIN_CARD,
            "Domain Card",
            "Gain an additional domain card slot at this level.",
            1,
        ),
        AdvancementOption(
            LevelChoice.EVASION_BONUS,
            "Evasion",
            "Permanently gain a +1 bonus to your Evasion.",
            1,
        ),
    )
}

LevelHistory = Mapping[int, Sequence[LevelChoice]]


def bracket_start(target_level: int) -> int | None:
    """First level of the bracket `target_level` belongs to, or None outside 2..10."""
    if target_level < BRACKET_STARTS[0] or target_level > MAX_LEVEL:
        return None
    start = BRACKET_STARTS[0]
    for candidate in BRACKET_STARTS:
        if target_level >= candidate:
            start = candidate
    return start


def next_eligible_level(character_level: int, completed_levels: Iterable[int]) -> int | None:
    """Smallest level in [2, character_level] without a record, or None."""
    completed = set(completed_levels)
    for level in range(MIN_LEVEL + 1, min(character_level, MAX_LEVEL) + 1):
        if level not in completed:
            return level
    return None


def bracket_usage(target_level: int, history: LevelHistory) -> dict[LevelChoice, int]:
    """How many times each option was taken in target_level's bracket, before target_level.

    Outside any bracket every count is zero (no limit applies).
    """
    usage = {choice: 0 for choice in LevelChoice}
    start = bracket_start(target_level)
    if start is None:
        return usage
    for level, choices in history.items():
        if start <= level < target_level:
            for choice in choices:
                usage[LevelChoice(choice)] += 1
    return usage


def remaining_in_bracket(target_level: int, history: LevelHistory) -> dict[LevelChoice, int]:
    """Per-option selections still allowed at target_level."""
    usage = bracket_usage(target_level, history)
    return {
        choice: max(0, OPTION_CATALOG[choice].max_per_bracket - used)
        for choice, used in usage.items()
    }


def requires_new_experience(target_level: int) -> bool:
    return target_level in NEW_EXPERIENCE_LEVELS


def resets_marked_traits(target_level: int) -> bool:
    return target_level in TRAIT_RESET_LEVELS


def validate_choices(
    target_level: int,
    history: LevelHistory,
    choices: Sequence[LevelChoice],
    new_experience: str | None = None,
) -> None:
    """Check a proposed pair of choices for target_level.

    Raises ValidationError naming the first rule broken. Level eligibility
    (target vs. next eligible level) is checked by the caller.
    """
    if len(choices) != CHOICES_PER_LEVEL:
        raise ValidationError(
            f"Exactly {CHOICES_PER_LEVEL} choices are required",
            target_level=target_level,
            choice_count=len(choices),
        )

    if requires_new_experience(target_level) and not (new_experience or "").strip():
        raise ValidationError(
            f"Level {target_level} requires a new Experience",
            target_level=target_level,
        )

    if bracket_start(target_level) is None:
        return

    remaining = remaining_in_bracket(target_level, history)
    for choice, wanted in Counter(LevelChoice(c) for c in choices).items():
        if wanted > remaining[choice]:
            option = OPTION_CATALOG[choice]
            raise ValidationError(
                f"{option.label} can only be chosen {option.max_per_bracket} "
                f"time(s) per bracket ({remaining[choice]} left)",
                target_level=target_level,
                choice=choice.value,
                max_per_bracket=option.max_per_bracket,
                remaining=remaining[choice],
            )


def hit_point_slots(history: LevelHistory) -> int:
    """Number of HIT_POINT_SLOT choices across the full history."""
    return sum(
        1
        for choices in history.values()
        for choice in choices
        if choice == LevelChoice.HIT_POINT_SLOT
    )


def max_hp(base_hp: int, history: LevelHistory) -> int:
    return base_hp + hit_point_slots(history)
