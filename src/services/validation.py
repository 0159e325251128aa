# src/services/validation.py
"""
Schema checks and whitespace cleanup for recipe submissions.

validate() is a pure check: it raises ValidationError for the first field
that breaks the rules (fields are checked in declaration order of
RecipeSubmission) and returns None otherwise. Length limits apply to the
trimmed text, and numeric fields must already be numbers. sanitize()
returns a trimmed copy and never fails.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Mapping, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from src.app.domain.errors import ValidationError

MAX_COOK_TIME_MINUTES = 1440
MAX_SERVINGS = 100

NonEmptyStep = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_url_adapter = TypeAdapter(AnyUrl)

_MESSAGES = {
    "title": "Title must be between 1 and 200 characters",
    "description": "Description must be at most 1000 characters",
    "cook_time": f"Cook time must be a positive number of minutes up to {MAX_COOK_TIME_MINUTES}",
    "servings": f"Servings must be a positive number up to {MAX_SERVINGS}",
    "image": "Image must be a valid URL",
    "ingredients": "At least one ingredient is required",
    "ingredients.item": "Each ingredient must have a name, amount, unit and category",
    "ingredients.name": "Ingredient name must be between 1 and 100 characters",
    "ingredients.amount": "Ingredient amount must be a positive number",
    "ingredients.unit": "Ingredient unit must be between 1 and 20 characters",
    "ingredients.category": "Ingredient category must be between 1 and 50 characters",
    "instructions": "At least one instruction is required",
    "instructions.step": "Instructions cannot be empty",
}


class IngredientInput(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    amount: float = Field(strict=True, gt=0)
    unit: str = Field(min_length=1, max_length=20)
    category: str = Field(min_length=1, max_length=50)


class RecipeSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    cook_time: float = Field(strict=True, gt=0, le=MAX_COOK_TIME_MINUTES)
    servings: int = Field(strict=True, gt=0, le=MAX_SERVINGS)
    image: Optional[str] = None
    ingredients: List[IngredientInput] = Field(min_length=1)
    instructions: List[NonEmptyStep] = Field(min_length=1)

    @field_validator("image")
    @classmethod
    def _image_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value:
            try:
                _url_adapter.validate_python(value)
            except PydanticValidationError:
                raise ValueError("invalid URL") from None
        return value


def _field_key(loc: tuple) -> tuple[str, str]:
    """(display path, message key) for a pydantic error location."""
    head = str(loc[0])
    if head == "ingredients" and len(loc) >= 3:
        return f"ingredients[{loc[1]}].{loc[2]}", f"ingredients.{loc[2]}"
    if head == "ingredients" and len(loc) == 2:
        return f"ingredients[{loc[1]}]", "ingredients.item"
    if head == "instructions" and len(loc) >= 2:
        return f"instructions[{loc[1]}]", "instructions.step"
    return head, head


def _present_fields(submission: Mapping[str, Any]) -> set[str]:
    return {
        name
        for name in RecipeSubmission.model_fields
        if name in submission and submission[name] is not None
    }


def validate(submission: Mapping[str, Any], *, partial: bool = False) -> None:
    """
    Check a submission against the recipe schema.

    Args:
        submission: Form payload with snake_case keys
        partial: Only check the keys present in the payload (updates)

    Raises:
        ValidationError: For the first field, in check order, that is invalid
    """
    if partial:
        fields = _present_fields(submission)
        if not fields:
            return
    else:
        fields = set(RecipeSubmission.model_fields)

    try:
        RecipeSubmission.model_validate(dict(submission))
    except PydanticValidationError as exc:
        for error in exc.errors():
            loc = error.get("loc") or ("submission",)
            if str(loc[0]) not in fields:
                continue
            field, key = _field_key(loc)
            raise ValidationError(field, _MESSAGES.get(key, error.get("msg", "Invalid value"))) from None


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _sanitize_ingredient(ingredient: Any) -> Any:
    if not isinstance(ingredient, Mapping):
        return ingredient
    cleaned = dict(ingredient)
    for key in ("name", "unit", "category"):
        if key in cleaned:
            cleaned[key] = _strip(cleaned[key])
    return cleaned


def sanitize(submission: Mapping[str, Any]) -> dict[str, Any]:
    """Trimmed copy of a submission. Numbers are left untouched."""
    cleaned = dict(submission)

    for key in ("title", "description", "image"):
        if key in cleaned:
            cleaned[key] = _strip(cleaned[key])

    if isinstance(cleaned.get("ingredients"), list):
        cleaned["ingredients"] = [_sanitize_ingredient(item) for item in cleaned["ingredients"]]

    if isinstance(cleaned.get("instructions"), list):
        cleaned["instructions"] = [_strip(step) for step in cleaned["instructions"]]

    return cleaned
