"""
Recipe Tool Registry

Declares the operations an agent may invoke over MCP. Each entry pairs the
MCP tool description (name, description, input schema) with the handler
that turns validated arguments into a store call and a text result.
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional

from mcp.types import CallToolResult, TextContent, Tool

from store import RecipeNotFoundError, RecipeStore

TOOL_LIST_DEFAULT_LIMIT = 20

ToolHandler = Callable[[RecipeStore, Dict[str, Any]], CallToolResult]


@dataclass(frozen=True)
class RegisteredTool:
    """A tool description bound to the handler that executes it."""

    tool: Tool
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.tool.name


class ToolRegistry:
    """Read-only, name-keyed collection of registered tools."""

    def __init__(self, tools: Iterable[RegisteredTool]):
        entries: Dict[str, RegisteredTool] = {}
        for entry in tools:
            if entry.name in entries:
                raise ValueError(f"Duplicate tool name: {entry.name}")
            entries[entry.name] = entry
        self._tools = MappingProxyType(entries)

    def get(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Tool]:
        return [entry.tool for entry in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def coerce_arguments(schema: Dict[str, Any], arguments: Any) -> Dict[str, Any]:
    """
    Permissively shape tool arguments to the tool's input schema.

    Unknown keys and null values are dropped, whole floats become ints and
    scalars inside string arrays become strings. Anything still malformed
    is left for the store to reject.
    """
    if not isinstance(arguments, dict):
        return {}

    properties = schema.get("properties", {})
    coerced: Dict[str, Any] = {}
    for key, value in arguments.items():
        spec = properties.get(key)
        if spec is None or value is None:
            continue

        kind = spec.get("type")
        if kind == "number" and isinstance(value, float) and value.is_integer():
            value = int(value)
        elif kind == "string" and isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        elif kind == "array" and isinstance(value, list):
            if spec.get("items", {}).get("type") == "string":
                value = [
                    item if isinstance(item, str) else str(item)
                    for item in value
                    if item is not None
                ]
        coerced[key] = value

    return coerced


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=text)],
        isError=is_error,
    )


def error_result(message: str) -> CallToolResult:
    return _text_result(message, is_error=True)


# Handlers


def save_recipe(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    data = dict(args)
    for key in ("ingredients", "instructions", "tags"):
        data.setdefault(key, [])

    recipe = store.save(data)
    return _text_result(
        f"Recipe saved successfully!\n\nID: {recipe.id}\nName: {recipe.name}"
        f"\n\n{_dump(recipe.to_wire())}"
    )


def list_recipes(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    recipes, total = store.list(
        args.get("limit"), args.get("offset"), default_limit=TOOL_LIST_DEFAULT_LIMIT
    )
    summary = "\n".join(
        f"• {r.id} — {r.name}{f' ({r.cuisine})' if r.cuisine else ''}"
        for r in recipes
    )
    return _text_result(
        f"Showing {len(recipes)} of {total} recipes:\n\n{summary}"
        f"\n\nFull data:\n{_dump([r.to_wire() for r in recipes])}"
    )


def get_recipe(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    recipe_id = args.get("id")
    recipe = store.get(recipe_id)
    if recipe is None:
        raise RecipeNotFoundError(recipe_id)
    return _text_result(_dump(recipe.to_wire()))


def search_recipes(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    query = args.get("query")
    recipes = store.search(query)
    if not recipes:
        return _text_result(f'No recipes found matching "{query}"')
    return _text_result(
        f'Found {len(recipes)} recipe(s) matching "{query}":'
        f"\n\n{_dump([r.to_wire() for r in recipes])}"
    )


def update_recipe(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    recipe_id = args.get("id")
    fields = {key: value for key, value in args.items() if key != "id"}
    recipe = store.update(recipe_id, fields)
    if recipe is None:
        raise RecipeNotFoundError(recipe_id)
    return _text_result(f"Recipe updated!\n\n{_dump(recipe.to_wire())}")


def delete_recipe(store: RecipeStore, args: Dict[str, Any]) -> CallToolResult:
    recipe_id = args.get("id")
    if not store.delete(recipe_id):
        raise RecipeNotFoundError(recipe_id)
    return _text_result(f"Recipe {recipe_id} deleted successfully.")


# Declarations

_STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _object_schema(properties: Dict[str, Any], required: Iterable[str] = ()) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    required = list(required)
    if required:
        schema["required"] = required
    return schema


RECIPE_TOOLS = (
    RegisteredTool(
        tool=Tool(
            name="save_recipe",
            description=(
                "Save a new recipe to the recipe collection. Use this whenever "
                "a user asks you to create or save a recipe."
            ),
            inputSchema=_object_schema(
                {
                    "name": {"type": "string", "description": "Recipe name (required)"},
                    "description": {"type": "string", "description": "A brief summary of the dish"},
                    "ingredients": {
                        **_STRING_LIST,
                        "description": 'List of ingredients, each as a string (e.g., "2 cups flour")',
                    },
                    "instructions": {**_STRING_LIST, "description": "Step-by-step cooking instructions"},
                    "prepTime": {"type": "number", "description": "Prep time in minutes"},
                    "cookTime": {"type": "number", "description": "Cook time in minutes"},
                    "servings": {"type": "number", "description": "Number of servings"},
                    "cuisine": {
                        "type": "string",
                        "description": "Cuisine type (e.g., Italian, Mexican, Thai)",
                    },
                    "tags": {
                        **_STRING_LIST,
                        "description": 'Tags for categorization (e.g., ["vegetarian", "quick", "dessert"])',
                    },
                    "source": {
                        "type": "string",
                        "description": 'Source of the recipe (e.g., "Claude", "GPT-4", "User")',
                    },
                },
                required=["name", "ingredients", "instructions"],
            ),
        ),
        handler=save_recipe,
    ),
    RegisteredTool(
        tool=Tool(
            name="list_recipes",
            description="List saved recipes, newest first. Supports pagination.",
            inputSchema=_object_schema(
                {
                    "limit": {"type": "number", "description": "Max results to return (default 20, max 100)"},
                    "offset": {"type": "number", "description": "Number of results to skip for pagination"},
                }
            ),
        ),
        handler=list_recipes,
    ),
    RegisteredTool(
        tool=Tool(
            name="get_recipe",
            description="Retrieve the full details of a specific recipe by its ID.",
            inputSchema=_object_schema(
                {"id": {"type": "string", "description": "The recipe ID (UUID)"}},
                required=["id"],
            ),
        ),
        handler=get_recipe,
    ),
    RegisteredTool(
        tool=Tool(
            name="search_recipes",
            description="Search recipes by name, ingredient, cuisine, description, or tag.",
            inputSchema=_object_schema(
                {
                    "query": {
                        "type": "string",
                        "description": "Search term to look for across all recipe fields",
                    }
                },
                required=["query"],
            ),
        ),
        handler=search_recipes,
    ),
    RegisteredTool(
        tool=Tool(
            name="update_recipe",
            description=(
                "Update fields of an existing recipe. Only the fields you provide "
                "will be changed."
            ),
            inputSchema=_object_schema(
                {
                    "id": {"type": "string", "description": "The recipe ID to update (required)"},
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "ingredients": _STRING_LIST,
                    "instructions": _STRING_LIST,
                    "prepTime": {"type": "number"},
                    "cookTime": {"type": "number"},
                    "servings": {"type": "number"},
                    "cuisine": {"type": "string"},
                    "tags": _STRING_LIST,
                },
                required=["id"],
            ),
        ),
        handler=update_recipe,
    ),
    RegisteredTool(
        tool=Tool(
            name="delete_recipe",
            description="Permanently delete a recipe by ID.",
            inputSchema=_object_schema(
                {"id": {"type": "string", "description": "The recipe ID to delete"}},
                required=["id"],
            ),
        ),
        handler=delete_recipe,
    ),
)


def build_recipe_registry() -> ToolRegistry:
    """Create the registry of recipe tools served to agents."""
    return ToolRegistry(RECIPE_TOOLS)
