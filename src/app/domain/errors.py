from __future__ import annotations


class RecipeDataError(Exception):
    pass


class ValidationError(RecipeDataError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class AuthError(RecipeDataError):
    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class NotFoundError(RecipeDataError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class AuthorizationError(RecipeDataError):
    def __init__(self, recipe_id: str, user_id: str):
        super().__init__(f"Unauthorized: user {user_id} does not own recipe {recipe_id}")
        self.recipe_id = recipe_id
        self.user_id = user_id


class StoreError(RecipeDataError):
    def __init__(self, operation: str, message: str, code: str | None = None):
        super().__init__(f"{operation}: {message or 'remote store error'}")
        self.operation = operation
        self.message = message
        self.code = code


class ImageDownloadError(RecipeDataError):
    def __init__(self, url: str, reason: str = "Download failed"):
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


class ConfigurationError(RecipeDataError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors
