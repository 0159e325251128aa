# src/app/infra/db/base.py
"""
Abstract interfaces for the remote relational store and the auth backend.
The repository depends only on these; the supabase implementations live in
supabase_recipes_repo.py.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.app.domain.models import CurrentUser

Row = dict[str, Any]


class RecipeStore(ABC):
    """
    Typed gateway over the three recipe tables.

    Implementations:
    - SupabaseRecipeStore: Postgres tables behind the Supabase REST API

    Every method raises StoreError when the store reports a failure.
    """

    # recipes (parent rows)

    @abstractmethod
    def insert_recipe(self, row: Row) -> Row:
        """
        Insert one parent row.

        Returns:
            The stored row, including the generated id and timestamps
        """
        pass

    @abstractmethod
    def get_recipe_row(self, recipe_id: str) -> Optional[Row]:
        """
        Fetch a parent row by id.

        Returns:
            The row, or None if no row has this id
        """
        pass

    @abstractmethod
    def list_recipe_rows(
        self,
        user_id: str,
        offset: int,
        limit: int,
        favorites_only: bool = False,
    ) -> tuple[list[Row], int]:
        """
        Page through a user's parent rows, newest first.

        Args:
            user_id: Owner filter
            offset: First row index (0-based, inclusive)
            limit: Max rows to return
            favorites_only: Restrict to rows flagged as favorite

        Returns:
            Tuple of (rows, total matching count)
        """
        pass

    @abstractmethod
    def search_recipe_rows(self, query: str) -> list[Row]:
        """
        Case-insensitive substring match on title, newest first.
        """
        pass

    @abstractmethod
    def update_recipe_row(self, recipe_id: str, fields: Row) -> Row:
        """
        Update scalar fields of a parent row.

        Returns:
            The row as stored after the update
        """
        pass

    @abstractmethod
    def delete_recipe_row(self, recipe_id: str) -> None:
        pass

    # ingredients

    @abstractmethod
    def insert_ingredients(self, rows: list[Row]) -> None:
        pass

    @abstractmethod
    def list_ingredients(self, recipe_id: str) -> list[Row]:
        pass

    @abstractmethod
    def delete_ingredients(self, recipe_id: str) -> None:
        pass

    # instructions

    @abstractmethod
    def insert_instructions(self, rows: list[Row]) -> None:
        pass

    @abstractmethod
    def list_instructions(self, recipe_id: str) -> list[Row]:
        """
        All instruction rows of a recipe ordered by step_number ascending.
        """
        pass

    @abstractmethod
    def delete_instructions(self, recipe_id: str) -> None:
        pass


class AuthProvider(ABC):

    @abstractmethod
    def get_current_user(self) -> Optional[CurrentUser]:
        """
        Returns:
            The signed-in user, or None when there is no session
        """
        pass
