# src/services/persist_models.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class RecipeRecord(BaseModel):
    title: str
    description: str = ""
    cook_time: int | float
    servings: int
    image_url: Optional[str] = None
    user_id: str


class IngredientRecord(BaseModel):
    recipe_id: str
    user_id: str
    name: str
    amount: float
    unit: str
    category: str


class InstructionRecord(BaseModel):
    recipe_id: str
    user_id: str
    step_number: int
    content: str
