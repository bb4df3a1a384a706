"""
Category directory capability used for narrative text.

The numeric pipeline only ever sees opaque category ids. Human-readable
names are looked up through any object exposing find_by_id(id), which the
surrounding application supplies.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    id: Hashable
    name: str
    icon: Optional[str] = None


class CategoryDirectory(Protocol):
    def find_by_id(self, category_id: Hashable) -> Optional[Any]:
        ...


class StaticCategoryDirectory:
    """In-memory directory backed by a mapping of id to Category."""

    def __init__(self, categories: Iterable[Category] = ()):
        self._categories: Dict[Hashable, Category] = {c.id: c for c in categories}

    @classmethod
    def from_names(cls, names: Dict[Hashable, str]) -> "StaticCategoryDirectory":
        return cls(Category(id=key, name=value) for key, value in names.items())

    def find_by_id(self, category_id: Hashable) -> Optional[Category]:
        return self._categories.get(category_id)


def fallback_category_name(category_id: Hashable) -> str:
    return f"Category {category_id}"


def resolve_category_name(
    directory: Optional[CategoryDirectory],
    category_id: Hashable
) -> str:
    """
    Look up a display name, falling back to "Category <id>".

    Directory entries may be objects with a name attribute or mappings
    with a "name" key.
    """
    if directory is None:
        return fallback_category_name(category_id)

    found = directory.find_by_id(category_id)
    if found is None:
        logger.debug("Category %s not found in directory", category_id)
        return fallback_category_name(category_id)

    name = found.get("name") if isinstance(found, dict) else getattr(found, "name", None)
    if not name or not str(name).strip():
        return fallback_category_name(category_id)
    return str(name).strip()
