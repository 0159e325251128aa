# src/app/domain/models.py
"""
Domain models for the recipe data access layer.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Recipe:
    """
    Aggregate root: the parent recipe row assembled with its ingredient
    names and ordered instruction contents.
    """
    id: str
    title: str
    description: str
    cook_time: float
    servings: int
    author_id: str

    image_url: Optional[str] = None
    is_favorite: bool = False

    ingredients: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)

    # ISO-8601 strings as returned by the store
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)


@dataclass
class RecipePage:
    """One page of the current user's recipes (parent rows only)."""
    recipes: list[Recipe]
    has_more: bool
    page: int
    page_size: int
    total_count: int


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class CacheEntry(Generic[T]):
    """A cached payload and the moment it was captured."""
    data: T
    timestamp: datetime
