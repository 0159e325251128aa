# src/app/deps.py (shared supabase client + repository wiring)

from __future__ import annotations

from datetime import timedelta

from supabase import Client, create_client

from src.app.config import Settings, configure_logging, settings as default_settings
from src.app.domain.errors import ConfigurationError
from src.app.domain.models import Recipe
from src.app.infra.db.supabase_recipes_repo import SupabaseAuthProvider, SupabaseRecipeStore
from src.app.infra.storage.httpx_downloader import HttpxImageDownloader
from src.app.infra.storage.image_cache import ImageCacheManager
from src.services.recipe_repository import RecipeRepository
from src.services.record_cache import RecordCache

_client: Client | None = None


def get_supabase(settings: Settings = default_settings) -> Client:
    global _client
    if _client is None:
        errors = settings.validate_supabase()
        if errors:
            raise ConfigurationError(errors)
        _client = create_client(str(settings.SUPABASE_URL), settings.SUPABASE_ANON_KEY)
    return _client


def build_image_cache(settings: Settings = default_settings) -> ImageCacheManager:
    downloader = HttpxImageDownloader(timeout_seconds=settings.IMAGE_DOWNLOAD_TIMEOUT_SECONDS)
    return ImageCacheManager(settings.IMAGE_CACHE_DIR, downloader)


def build_recipe_repository(
    settings: Settings = default_settings,
    client: Client | None = None,
    *,
    configure_logs: bool = False,
) -> RecipeRepository:
    """
    Wire a repository against Supabase.
    Each call gets its own record cache; the supabase client is shared.
    """
    if configure_logs:
        configure_logging(settings.LOG_LEVEL)

    supa = client or get_supabase(settings)
    cache: RecordCache[Recipe] = RecordCache(ttl=timedelta(days=settings.RECORD_CACHE_TTL_DAYS))

    return RecipeRepository(
        store=SupabaseRecipeStore(supa),
        auth=SupabaseAuthProvider(supa),
        cache=cache,
        image_cache=build_image_cache(settings),
        page_size=settings.RECIPES_PAGE_SIZE,
    )
