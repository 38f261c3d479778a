"""Catalog endpoints - read-only class and ability reference data."""

from fastapi import APIRouter, Query

from app.schemas.catalog import Ability, ClassDefinition
from app.services.catalog_service import catalog_service

router = APIRouter()


@router.get("/classes", response_model=list[ClassDefinition])
async def list_classes():
    return catalog_service.list_classes()


@router.get("/abilities", response_model=list[Ability])
async def list_abilities(
    domain: str | None = None,
    max_level: int | None = Query(default=None, ge=1, le=10),
):
    """List domain cards, optionally filtered by domain and max level."""
    return catalog_service.list_abilities([domain] if domain else None, max_level=max_level)
