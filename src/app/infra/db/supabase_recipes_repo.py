from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.app.domain.errors import StoreError
from src.app.domain.models import CurrentUser
from src.app.infra.db.base import AuthProvider, RecipeStore, Row

logger = logging.getLogger(__name__)


def _api_error_message(error: APIError) -> str:
    return str(getattr(error, "message", None) or error)


class SupabaseRecipeStore(RecipeStore):
    RECIPES_TABLE = "recipes"
    INGREDIENTS_TABLE = "ingredients"
    INSTRUCTIONS_TABLE = "instructions"

    def __init__(self, client: Client):
        self._client = client
        logger.info("SupabaseRecipeStore initialized")

    def _execute(self, operation: str, query: Any) -> Any:
        try:
            return query.execute()
        except APIError as error:
            logger.error("Store error during %s: %s", operation, error)
            raise StoreError(operation, _api_error_message(error), getattr(error, "code", None)) from error
        except (httpx.HTTPError, ConnectionError, TimeoutError) as error:
            logger.error("Network error during %s: %s", operation, error)
            raise StoreError(operation, str(error) or type(error).__name__) from error

    def insert_recipe(self, row: Row) -> Row:
        result = self._execute(
            "insert recipe",
            self._client.table(self.RECIPES_TABLE).insert(row),
        )
        if not result.data:
            raise StoreError("insert recipe", "store returned no row for the new recipe")
        return result.data[0]

    def get_recipe_row(self, recipe_id: str) -> Row | None:
        result = self._execute(
            "get recipe",
            self._client.table(self.RECIPES_TABLE).select("*").eq("id", recipe_id).limit(1),
        )
        return result.data[0] if result.data else None

    def list_recipe_rows(
        self,
        user_id: str,
        offset: int,
        limit: int,
        favorites_only: bool = False,
    ) -> tuple[list[Row], int]:
        query = (
            self._client.table(self.RECIPES_TABLE)
            .select("*", count="exact")
            .eq("user_id", user_id)
        )
        if favorites_only:
            query = query.eq("is_favorite", True)

        result = self._execute(
            "list recipes",
            query.order("created_at", desc=True).range(offset, offset + limit - 1),
        )
        rows: list[Row] = result.data or []
        total = result.count if result.count is not None else offset + len(rows)
        return rows, total

    def search_recipe_rows(self, query: str) -> list[Row]:
        result = self._execute(
            "search recipes",
            self._client.table(self.RECIPES_TABLE)
            .select("*")
            .ilike("title", f"%{query}%")
            .order("created_at", desc=True),
        )
        return result.data or []

    def update_recipe_row(self, recipe_id: str, fields: Row) -> Row:
        result = self._execute(
            "update recipe",
            self._client.table(self.RECIPES_TABLE).update(fields).eq("id", recipe_id),
        )
        if not result.data:
            raise StoreError("update recipe", f"no row updated for recipe {recipe_id}")
        return result.data[0]

    def delete_recipe_row(self, recipe_id: str) -> None:
        self._execute(
            "delete recipe",
            self._client.table(self.RECIPES_TABLE).delete().eq("id", recipe_id),
        )

    def insert_ingredients(self, rows: list[Row]) -> None:
        self._execute(
            "insert ingredients",
            self._client.table(self.INGREDIENTS_TABLE).insert(rows),
        )

    def list_ingredients(self, recipe_id: str) -> list[Row]:
        result = self._execute(
            "list ingredients",
            self._client.table(self.INGREDIENTS_TABLE).select("*").eq("recipe_id", recipe_id),
        )
        return result.data or []

    def delete_ingredients(self, recipe_id: str) -> None:
        self._execute(
            "delete ingredients",
            self._client.table(self.INGREDIENTS_TABLE).delete().eq("recipe_id", recipe_id),
        )

    def insert_instructions(self, rows: list[Row]) -> None:
        self._execute(
            "insert instructions",
            self._client.table(self.INSTRUCTIONS_TABLE).insert(rows),
        )

    def list_instructions(self, recipe_id: str) -> list[Row]:
        result = self._execute(
            "list instructions",
            self._client.table(self.INSTRUCTIONS_TABLE)
            .select("*")
            .eq("recipe_id", recipe_id)
            .order("step_number", desc=False),
        )
        return result.data or []

    def delete_instructions(self, recipe_id: str) -> None:
        self._execute(
            "delete instructions",
            self._client.table(self.INSTRUCTIONS_TABLE).delete().eq("recipe_id", recipe_id),
        )


class SupabaseAuthProvider(AuthProvider):

    def __init__(self, client: Client):
        self._client = client

    def get_current_user(self) -> CurrentUser | None:
        try:
            res = self._client.auth.get_user()
        except Exception as error:
            # expired or revoked session: callers treat it as signed out
            logger.warning("Could not resolve current user: %s", error)
            return None

        user = getattr(res, "user", None) if res else None
        if not user:
            return None

        meta = getattr(user, "user_metadata", None) or {}
        return CurrentUser(
            id=str(user.id),
            email=user.email,
            metadata=dict(meta) if isinstance(meta, dict) else {},
        )
