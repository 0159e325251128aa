from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.app import deps
from src.app.config import Settings
from src.app.domain.errors import ConfigurationError
from src.app.infra.db.supabase_recipes_repo import SupabaseRecipeStore
from src.services.recipe_repository import RecipeRepository


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RECORD_CACHE_TTL_DAYS", raising=False)
        monkeypatch.delenv("RECIPES_PAGE_SIZE", raising=False)

        settings = Settings(_env_file=None)

        assert settings.RECORD_CACHE_TTL_DAYS == 7
        assert settings.RECIPES_PAGE_SIZE == 20
        assert settings.IMAGE_DOWNLOAD_TIMEOUT_SECONDS == 15.0

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        monkeypatch.setenv("RECIPES_PAGE_SIZE", "10")
        monkeypatch.setenv("IMAGE_CACHE_DIR", str(tmp_path))

        settings = Settings(_env_file=None)

        assert settings.validate_supabase() == []
        assert settings.RECIPES_PAGE_SIZE == 10
        assert settings.IMAGE_CACHE_DIR == tmp_path

    def test_validate_reports_missing_supabase(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)

        errors = Settings(_env_file=None).validate_supabase()

        assert "SUPABASE_URL is required" in errors
        assert "SUPABASE_ANON_KEY is required" in errors


class TestBuildRecipeRepository:
    def test_get_supabase_requires_configuration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        monkeypatch.setattr(deps, "_client", None)

        with pytest.raises(ConfigurationError):
            deps.get_supabase(Settings(_env_file=None))

    def test_wires_repository_with_given_client(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("IMAGE_CACHE_DIR", str(tmp_path / "images"))
        monkeypatch.setenv("RECIPES_PAGE_SIZE", "15")
        monkeypatch.setenv("RECORD_CACHE_TTL_DAYS", "3")
        settings = Settings(_env_file=None)

        repo = deps.build_recipe_repository(settings, client=MagicMock())

        assert isinstance(repo, RecipeRepository)
        assert isinstance(repo._store, SupabaseRecipeStore)
        assert repo.page_size == 15
        assert repo.cache.ttl.days == 3
        assert (tmp_path / "images").is_dir()

    def test_each_repository_gets_its_own_cache(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IMAGE_CACHE_DIR", str(tmp_path))
        settings = Settings(_env_file=None)
        client = MagicMock()

        first = deps.build_recipe_repository(settings, client=client)
        second = deps.build_recipe_repository(settings, client=client)

        assert first.cache is not second.cache
