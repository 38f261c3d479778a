"""Reference catalog schemas - abilities (domain cards) and classes, loaded from YAML."""

from pydantic import BaseModel, Field


class Ability(BaseModel):
    """A domain card definition."""
    name: str
    level: int = Field(ge=1, le=10)
    domain: str
    text: str = ""


class ClassDefinition(BaseModel):
    name: str
    hp: int  # base hit points
    evasion: int
    domains: list[str]  # the two domains the class can draw cards from
