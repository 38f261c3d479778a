"""Catalog service - loads the ability (domain card) and class catalogs from YAML.

Both catalogs are read-only reference data; they are parsed once and cached.
"""

import logging
from pathlib import Path

import yaml

from app.config import settings
from app.schemas.catalog import Ability, ClassDefinition

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"


class CatalogService:
    def __init__(self, data_dir: Path | None = None):
        self._data_dir = data_dir
        self._abilities: dict[str, Ability] | None = None
        self._classes: dict[str, ClassDefinition] | None = None

    @property
    def data_dir(self) -> Path:
        if self._data_dir is not None:
            return self._data_dir
        return Path(settings.CATALOG_DIR) if settings.CATALOG_DIR else DATA_DIR

    def _load_yaml(self, filename: str) -> list[dict]:
        file_path = self.data_dir / filename
        if not file_path.exists():
            raise FileNotFoundError(f"Catalog file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or []
        return raw

    def load_abilities(self) -> dict[str, Ability]:
        """Load abilities keyed by name (case-sensitive, as stored on SelectedCard)."""
        if self._abilities is None:
            abilities = {}
            for entry in self._load_yaml("abilities.yaml"):
                ability = Ability(**entry)
                abilities[ability.name] = ability
            logger.info("Loaded %d abilities from %s", len(abilities), self.data_dir)
            self._abilities = abilities
        return self._abilities

    def load_classes(self) -> dict[str, ClassDefinition]:
        """Load classes keyed by lower-cased name."""
        if self._classes is None:
            classes = {}
            for entry in self._load_yaml("classes.yaml"):
                cls = ClassDefinition(**entry)
                classes[cls.name.lower()] = cls
            logger.info("Loaded %d classes from %s", len(classes), self.data_dir)
            self._classes = classes
        return self._classes

    def clear_cache(self) -> None:
        self._abilities = None
        self._classes = None

    def get_ability(self, name: str) -> Ability | None:
        """Look up a card by name. Returns None if not found."""
        return self.load_abilities().get(name)

    def get_class(self, class_name: str) -> ClassDefinition | None:
        """Look up a class case-insensitively. Returns None if not found."""
        return self.load_classes().get(class_name.strip().lower())

    def base_hp(self, class_name: str) -> int:
        """Base HP for a class, falling back to DEFAULT_BASE_HP for unknown classes."""
        cls = self.get_class(class_name)
        if cls is None:
            logger.warning(
                "Unknown class %r, using default base HP %d", class_name, settings.DEFAULT_BASE_HP
            )
            return settings.DEFAULT_BASE_HP
        return cls.hp

    def list_classes(self) -> list[ClassDefinition]:
        return sorted(self.load_classes().values(), key=lambda c: c.name)

    def list_abilities(
        self,
        domains: list[str] | None = None,
        max_level: int | None = None,
    ) -> list[Ability]:
        """List abilities, optionally filtered by domain(s) and max level, sorted by level then name."""
        wanted = {d.lower() for d in domains} if domains else None
        abilities = [
            ability
            for ability in self.load_abilities().values()
            if (wanted is None or ability.domain.lower() in wanted)
            and (max_level is None or ability.level <= max_level)
        ]
        return sorted(abilities, key=lambda a: (a.level, a.name))


catalog_service = CatalogService()
