from __future__ import annotations

import pytest

from src.app.domain.errors import (
    RecipeDataError,
    ValidationError,
    AuthError,
    NotFoundError,
    AuthorizationError,
    StoreError,
    ImageDownloadError,
    ConfigurationError,
)


class TestRecipeDataError:
    def test_base_exception(self) -> None:
        error = RecipeDataError("Base error")
        assert str(error) == "Base error"
        assert isinstance(error, Exception)


class TestValidationError:
    def test_carries_field_and_message(self) -> None:
        error = ValidationError("title", "Title must be between 1 and 200 characters")
        assert str(error) == "Title must be between 1 and 200 characters"
        assert error.field == "title"
        assert error.message == "Title must be between 1 and 200 characters"


class TestAuthError:
    def test_default_message(self) -> None:
        assert str(AuthError()) == "User not authenticated"

    def test_custom_message(self) -> None:
        assert str(AuthError("Session expired")) == "Session expired"


class TestNotFoundError:
    def test_includes_recipe_id(self) -> None:
        error = NotFoundError("recipe-42")
        assert "recipe-42" in str(error)
        assert error.recipe_id == "recipe-42"


class TestAuthorizationError:
    def test_includes_recipe_and_user(self) -> None:
        error = AuthorizationError("recipe-1", "user-b")
        assert str(error).startswith("Unauthorized")
        assert "recipe-1" in str(error)
        assert "user-b" in str(error)
        assert error.recipe_id == "recipe-1"
        assert error.user_id == "user-b"


class TestStoreError:
    def test_keeps_store_message_verbatim(self) -> None:
        error = StoreError("insert ingredients", 'violates foreign key constraint "fk_recipe"', code="23503")
        assert 'violates foreign key constraint "fk_recipe"' in str(error)
        assert error.operation == "insert ingredients"
        assert error.message == 'violates foreign key constraint "fk_recipe"'
        assert error.code == "23503"

    def test_never_empty_message(self) -> None:
        error = StoreError("get recipe", "")
        assert str(error) == "get recipe: remote store error"


class TestImageDownloadError:
    def test_includes_url_and_reason(self) -> None:
        error = ImageDownloadError("https://cdn.example.com/a.jpg", "HTTP 404")
        assert "https://cdn.example.com/a.jpg" in str(error)
        assert error.reason == "HTTP 404"


class TestConfigurationError:
    def test_includes_all_errors(self) -> None:
        errors = ["SUPABASE_URL is required", "SUPABASE_ANON_KEY is required"]
        error = ConfigurationError(errors)
        assert "SUPABASE_URL is required" in str(error)
        assert "SUPABASE_ANON_KEY is required" in str(error)
        assert error.errors == errors


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "error_cls",
        [
            ValidationError,
            AuthError,
            NotFoundError,
            AuthorizationError,
            StoreError,
            ImageDownloadError,
            ConfigurationError,
        ],
    )
    def test_all_errors_inherit_from_recipe_data_error(self, error_cls: type) -> None:
        assert issubclass(error_cls, RecipeDataError)
