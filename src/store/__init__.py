"""
Recipe Persistence Package

Owns every persisted recipe record. The store knows nothing about the
REST API or the MCP protocol; both boundaries call into it.
"""

from .database import RecipeStore, normalize_page
from .errors import (
    RecipeError,
    RecipeNotFoundError,
    RecipeValidationError,
    StoreError,
)
from .models import Recipe, RecipeInput, RecipeUpdate

__all__ = [
    "RecipeStore",
    "normalize_page",
    "Recipe",
    "RecipeInput",
    "RecipeUpdate",
    "RecipeError",
    "RecipeNotFoundError",
    "RecipeValidationError",
    "StoreError",
]
