from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from store import (
    RecipeNotFoundError,
    RecipeStore,
    RecipeValidationError,
    normalize_page,
)

from ..dependencies import get_store
from ..models.schemas import ErrorResponse

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse}}
INVALID = {400: {"model": ErrorResponse}}


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise RecipeValidationError("Request body must be a JSON object")
    return payload


@router.get("", summary="List or search recipes")
def list_recipes(
    q: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    store: RecipeStore = Depends(get_store),
):
    if q:
        recipes = store.search(q)
        return {"recipes": [r.to_wire() for r in recipes], "total": len(recipes)}

    recipes, total = store.list(limit, offset)
    page_limit, page_offset = normalize_page(limit, offset)
    return {
        "recipes": [r.to_wire() for r in recipes],
        "total": total,
        "limit": page_limit,
        "offset": page_offset,
    }


@router.get("/{recipe_id}", summary="Get a recipe", responses=NOT_FOUND)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    recipe = store.get(recipe_id)
    if recipe is None:
        raise RecipeNotFoundError(recipe_id)
    return recipe.to_wire()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Save a new recipe",
    responses=INVALID,
)
def create_recipe(payload: Any = Body(None), store: RecipeStore = Depends(get_store)):
    data = _require_object(payload)
    if (
        not data.get("name")
        or not isinstance(data.get("ingredients"), list)
        or not isinstance(data.get("instructions"), list)
    ):
        raise RecipeValidationError(
            "name, ingredients (array), and instructions (array) are required"
        )
    return store.save(data).to_wire()


@router.put(
    "/{recipe_id}",
    summary="Update fields of a recipe",
    responses={**NOT_FOUND, **INVALID},
)
def update_recipe(
    recipe_id: str,
    payload: Any = Body(None),
    store: RecipeStore = Depends(get_store),
):
    recipe = store.update(recipe_id, _require_object(payload))
    if recipe is None:
        raise RecipeNotFoundError(recipe_id)
    return recipe.to_wire()


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a recipe",
    responses=NOT_FOUND,
)
def delete_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    if not store.delete(recipe_id):
        raise RecipeNotFoundError(recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
