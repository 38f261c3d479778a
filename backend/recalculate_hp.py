#!/usr/bin/env python3
"""Recompute max HP for every stored character.

max HP = class base HP + number of HIT_POINT_SLOT choices in the level history.
Run after changing class base HP in the catalog, or to repair drifted rows.

Usage:
    python recalculate_hp.py            # apply changes
    python recalculate_hp.py --dry-run  # only report
"""

import argparse
import asyncio
import logging

from sqlalchemy import select

from app.core.logging_config import setup_logging
from app.db.database import async_session, engine
from app.models.character import Character
from app.services.progression_service import progression_service

logger = logging.getLogger("recalculate_hp")


async def recalculate_all(session_factory=async_session, dry_run: bool = False) -> int:
    """Returns the number of characters whose max HP changed."""
    changed = 0
    async with session_factory() as session:
        result = await session.execute(select(Character).order_by(Character.id))
        characters = list(result.scalars().all())
        logger.info("Found %d characters to check", len(characters))

        for character in characters:
            old_hp = character.max_hp
            new_hp = await progression_service.recalculate_max_hp(session, character)
            if new_hp != old_hp:
                changed += 1
                logger.info(
                    "%s character %d: %d -> %d", character.class_name, character.id, old_hp, new_hp
                )

        if dry_run:
            await session.rollback()
        else:
            await session.commit()

    logger.info("HP recalculation complete (%d changed%s)", changed, ", dry run" if dry_run else "")
    return changed


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report changes without saving")
    args = parser.parse_args()

    setup_logging()
    try:
        await recalculate_all(dry_run=args.dry_run)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
