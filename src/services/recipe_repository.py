from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from src.app.domain.errors import (
    AuthError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from src.app.domain.models import CurrentUser, Recipe, RecipePage
from src.app.infra.db.base import AuthProvider, RecipeStore, Row
from src.app.infra.storage.image_cache import ImageCacheManager
from src.services.persist_models import IngredientRecord, InstructionRecord, RecipeRecord
from src.services.record_cache import RecordCache
from src.services.validation import sanitize, validate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

# submission key -> recipes column
_SCALAR_COLUMNS = (
    ("title", "title"),
    ("description", "description"),
    ("cook_time", "cook_time"),
    ("servings", "servings"),
)


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _row_to_recipe(
    row: Row,
    ingredients: list[str] | None = None,
    instructions: list[str] | None = None,
) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        cook_time=row.get("cook_time") or 0,
        servings=int(row.get("servings") or 0),
        author_id=str(row.get("user_id") or ""),
        image_url=_safe_str(row.get("image_url")),
        is_favorite=bool(row.get("is_favorite", False)),
        ingredients=list(ingredients or []),
        instructions=list(instructions or []),
        created_at=_safe_str(row.get("created_at")),
        updated_at=_safe_str(row.get("updated_at")),
    )


def _ingredient_rows(recipe_id: str, user_id: str, ingredients: list[Mapping[str, Any]]) -> list[Row]:
    return [
        IngredientRecord(
            recipe_id=recipe_id,
            user_id=user_id,
            name=item["name"],
            amount=item["amount"],
            unit=item["unit"],
            category=item["category"],
        ).model_dump()
        for item in ingredients
    ]


def _instruction_rows(recipe_id: str, user_id: str, instructions: list[str]) -> list[Row]:
    return [
        InstructionRecord(
            recipe_id=recipe_id,
            user_id=user_id,
            step_number=index + 1,
            content=content,
        ).model_dump()
        for index, content in enumerate(instructions)
    ]


class RecipeRepository:
    """
    Single entry point for recipe persistence and retrieval.

    Writes go parent row first, then ingredients, then instructions. There
    is no rollback: if a child write fails the rows written before it stay
    in the store and the StoreError names the failing step.
    """

    def __init__(
        self,
        store: RecipeStore,
        auth: AuthProvider,
        cache: Optional[RecordCache[Recipe]] = None,
        image_cache: Optional[ImageCacheManager] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._store = store
        self._auth = auth
        self._cache: RecordCache[Recipe] = cache if cache is not None else RecordCache()
        self._image_cache = image_cache
        self.page_size = page_size

    @property
    def cache(self) -> RecordCache[Recipe]:
        return self._cache

    async def _require_user(self) -> CurrentUser:
        user = await run_in_threadpool(self._auth.get_current_user)
        if user is None:
            raise AuthError()
        return user

    async def _require_owned_row(self, recipe_id: str, user: CurrentUser) -> Row:
        # always a fresh read: ownership is never checked against the cache
        row = await run_in_threadpool(self._store.get_recipe_row, recipe_id)
        if row is None:
            raise NotFoundError(recipe_id)
        if str(row.get("user_id")) != user.id:
            logger.warning("recipes.unauthorized id=%s user=%s", recipe_id, user.id)
            raise AuthorizationError(recipe_id, user.id)
        return row

    async def _ingredient_names(self, recipe_id: str) -> list[str]:
        rows = await run_in_threadpool(self._store.list_ingredients, recipe_id)
        return [str(row["name"]) for row in rows]

    async def _instruction_contents(self, recipe_id: str) -> list[str]:
        rows = await run_in_threadpool(self._store.list_instructions, recipe_id)
        return [str(row["content"]) for row in rows]

    async def _with_children(self, row: Row) -> Recipe:
        recipe_id = str(row["id"])
        ingredients = await self._ingredient_names(recipe_id)
        instructions = await self._instruction_contents(recipe_id)
        return _row_to_recipe(row, ingredients, instructions)

    async def _fetch_recipe(self, recipe_id: str) -> Recipe:
        row = await run_in_threadpool(self._store.get_recipe_row, recipe_id)
        if row is None:
            raise NotFoundError(recipe_id)
        return await self._with_children(row)

    async def _write_children(
        self,
        recipe_id: str,
        user_id: str,
        ingredients: Optional[list[Mapping[str, Any]]],
        instructions: Optional[list[str]],
        replace: bool,
    ) -> None:
        try:
            if ingredients is not None:
                if replace:
                    await run_in_threadpool(self._store.delete_ingredients, recipe_id)
                if ingredients:
                    await run_in_threadpool(
                        self._store.insert_ingredients,
                        _ingredient_rows(recipe_id, user_id, ingredients),
                    )

            if instructions is not None:
                if replace:
                    await run_in_threadpool(self._store.delete_instructions, recipe_id)
                if instructions:
                    await run_in_threadpool(
                        self._store.insert_instructions,
                        _instruction_rows(recipe_id, user_id, instructions),
                    )
        except StoreError as exc:
            logger.warning(
                "recipes.partial_write id=%s failed_step=%r; earlier steps stay committed",
                recipe_id,
                exc.operation,
            )
            raise

    async def create_recipe(self, submission: Mapping[str, Any]) -> Recipe:
        user = await self._require_user()

        validate(submission)
        clean = sanitize(submission)

        record = RecipeRecord(
            title=clean["title"],
            description=clean.get("description") or "",
            cook_time=clean["cook_time"],
            servings=clean["servings"],
            image_url=clean.get("image") or None,
            user_id=user.id,
        )
        row = await run_in_threadpool(self._store.insert_recipe, record.model_dump())
        recipe_id = str(row["id"])

        ingredients = list(clean.get("ingredients") or [])
        instructions = list(clean.get("instructions") or [])
        await self._write_children(recipe_id, user.id, ingredients, instructions, replace=False)

        logger.info("recipes.created id=%s author=%s", recipe_id, user.id)
        recipe = _row_to_recipe(
            row,
            [str(item["name"]) for item in ingredients],
            instructions,
        )
        recipe.is_favorite = False
        return recipe

    async def get_recipe(self, recipe_id: str) -> Recipe:
        cached = self._cache.get(recipe_id)
        if cached is not None:
            logger.debug("recipes.cache_hit id=%s", recipe_id)
            return cached

        logger.debug("recipes.cache_miss id=%s", recipe_id)
        recipe = await self._fetch_recipe(recipe_id)
        self._cache.set(recipe_id, recipe)
        return recipe

    def prefetch_recipe(self, recipe_id: str) -> None:
        """Start loading a recipe into the cache in the background."""
        if self._cache.get(recipe_id) is not None:
            return
        self._cache.prefetch(recipe_id, partial(self._fetch_recipe, recipe_id))

    async def get_user_recipes(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        *,
        favorites_only: bool = False,
    ) -> RecipePage:
        size = page_size if page_size is not None else self.page_size
        if page < 1:
            raise ValidationError("page", "Page must be 1 or greater")
        if size < 1:
            raise ValidationError("page_size", "Page size must be 1 or greater")

        user = await self._require_user()
        offset = (page - 1) * size

        rows, total = await run_in_threadpool(
            self._store.list_recipe_rows,
            user.id,
            offset,
            size,
            favorites_only,
        )
        recipes = [_row_to_recipe(row) for row in rows]
        has_more = offset + len(recipes) < total

        logger.debug(
            "recipes.listed user=%s page=%d returned=%d total=%d has_more=%s",
            user.id, page, len(recipes), total, has_more,
        )
        return RecipePage(
            recipes=recipes,
            has_more=has_more,
            page=page,
            page_size=size,
            total_count=total,
        )

    async def update_recipe(
        self,
        recipe_id: str,
        submission: Optional[Mapping[str, Any]] = None,
    ) -> Recipe:
        user = await self._require_user()
        existing = await self._require_owned_row(recipe_id, user)

        clean: dict[str, Any] = {}
        if submission:
            validate(submission, partial=True)
            clean = sanitize(submission)

        fields: Row = {
            column: clean[key]
            for key, column in _SCALAR_COLUMNS
            if clean.get(key) is not None
        }
        if "image" in clean:
            fields["image_url"] = clean["image"] or None

        row = existing
        if fields:
            row = await run_in_threadpool(self._store.update_recipe_row, recipe_id, fields)

        ingredients = clean.get("ingredients")
        instructions = clean.get("instructions")
        await self._write_children(recipe_id, user.id, ingredients, instructions, replace=True)

        ingredient_names = (
            [str(item["name"]) for item in ingredients]
            if ingredients is not None
            else await self._ingredient_names(recipe_id)
        )
        if instructions is None:
            instructions = await self._instruction_contents(recipe_id)

        recipe = _row_to_recipe(row, ingredient_names, instructions)
        self._cache.set(recipe_id, recipe)
        logger.info("recipes.updated id=%s fields=%s", recipe_id, sorted(fields))
        return recipe

    async def set_favorite(self, recipe_id: str, is_favorite: bool) -> Recipe:
        user = await self._require_user()
        await self._require_owned_row(recipe_id, user)

        row = await run_in_threadpool(
            self._store.update_recipe_row,
            recipe_id,
            {"is_favorite": bool(is_favorite)},
        )
        recipe = await self._with_children(row)
        self._cache.set(recipe_id, recipe)
        logger.info("recipes.favorite id=%s is_favorite=%s", recipe_id, recipe.is_favorite)
        return recipe

    async def delete_recipe(self, recipe_id: str) -> None:
        user = await self._require_user()
        await self._require_owned_row(recipe_id, user)

        # ingredient and instruction rows go with the parent via ON DELETE CASCADE
        await run_in_threadpool(self._store.delete_recipe_row, recipe_id)
        self._cache.invalidate(recipe_id)
        logger.info("recipes.deleted id=%s", recipe_id)

    async def search_recipes(self, query: str) -> list[Recipe]:
        rows = await run_in_threadpool(self._store.search_recipe_rows, query)
        return list(await asyncio.gather(*(self._with_children(row) for row in rows)))

    async def resolve_image(self, recipe: Recipe) -> Optional[str]:
        """Local path for the recipe image, or its remote URL when not cached."""
        if not recipe.image_url or self._image_cache is None:
            return recipe.image_url
        return await self._image_cache.resolve(recipe.image_url)
