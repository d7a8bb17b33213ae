#!/usr/bin/env python3
"""
Test the recipe tool registry and tool handlers
"""

import json

import pytest

from app.tools import coerce_arguments, list_recipes, search_recipes, save_recipe
from store import RecipeNotFoundError

EXPECTED_TOOLS = [
    "save_recipe",
    "list_recipes",
    "get_recipe",
    "search_recipes",
    "update_recipe",
    "delete_recipe",
]


def result_text(result):
    return result.content[0].text


def test_registry_declares_six_tools(registry):
    assert registry.names() == EXPECTED_TOOLS
    assert len(registry) == 6
    for tool in registry.list_tools():
        assert tool.description
        assert tool.inputSchema["type"] == "object"


def test_registry_lookup(registry):
    assert registry.get("get_recipe").name == "get_recipe"
    assert registry.get("fly_to_moon") is None
    assert "save_recipe" in registry
    assert "fly_to_moon" not in registry


@pytest.mark.parametrize(
    "tool_name, required",
    [
        ("save_recipe", ["name", "ingredients", "instructions"]),
        ("get_recipe", ["id"]),
        ("search_recipes", ["query"]),
        ("update_recipe", ["id"]),
        ("delete_recipe", ["id"]),
    ],
)
def test_required_fields(registry, tool_name, required):
    schema = registry.get(tool_name).tool.inputSchema
    assert schema["required"] == required


def test_list_tool_has_no_required_fields(registry):
    assert "required" not in registry.get("list_recipes").tool.inputSchema


def test_sequence_fields_declare_string_items(registry):
    properties = registry.get("save_recipe").tool.inputSchema["properties"]
    for field in ("ingredients", "instructions", "tags"):
        assert properties[field]["type"] == "array"
        assert properties[field]["items"] == {"type": "string"}


def test_registry_rejects_duplicate_names(registry):
    from app.tools import ToolRegistry

    entry = registry.get("get_recipe")
    with pytest.raises(ValueError):
        ToolRegistry([entry, entry])


def test_coerce_drops_unknown_and_null_fields(registry):
    schema = registry.get("save_recipe").tool.inputSchema
    coerced = coerce_arguments(
        schema, {"name": "Tea", "description": None, "color": "green"}
    )
    assert coerced == {"name": "Tea"}


def test_coerce_shapes_values(registry):
    schema = registry.get("save_recipe").tool.inputSchema
    coerced = coerce_arguments(
        schema,
        {"prepTime": 5.0, "cuisine": 42, "ingredients": ["egg", 2, None], "servings": 2.5},
    )
    assert coerced == {
        "prepTime": 5,
        "cuisine": "42",
        "ingredients": ["egg", "2"],
        "servings": 2.5,
    }


def test_coerce_leaves_wrong_shapes_for_the_store(registry):
    schema = registry.get("save_recipe").tool.inputSchema
    assert coerce_arguments(schema, {"ingredients": "eggs"}) == {"ingredients": "eggs"}


@pytest.mark.parametrize("arguments", [None, [], "name=Tea"])
def test_coerce_non_object_arguments(registry, arguments):
    schema = registry.get("save_recipe").tool.inputSchema
    assert coerce_arguments(schema, arguments) == {}


def test_save_handler_defaults_sequences(store):
    result = save_recipe(store, {"name": "Toast"})

    assert not result.isError
    assert store.count() == 1
    recipe = store.list()[0][0]
    assert recipe.ingredients == []
    assert recipe.instructions == []


def test_list_handler_formats_summary(store, sample_recipes):
    carbonara = store.save(sample_recipes["carbonara"])
    salad = store.save(sample_recipes["salad"])

    text = result_text(list_recipes(store, {}))
    summary, full = text.split("\n\nFull data:\n")

    assert summary.splitlines() == [
        "Showing 2 of 2 recipes:",
        "",
        f"• {salad.id} — Orzo Salad",
        f"• {carbonara.id} — Spaghetti Carbonara (Italian)",
    ]
    assert [r["id"] for r in json.loads(full)] == [salad.id, carbonara.id]


def test_list_handler_pages_with_tool_default(store, tea_recipe):
    for _ in range(25):
        store.save(tea_recipe)

    assert result_text(list_recipes(store, {})).startswith("Showing 20 of 25 recipes:")
    assert result_text(list_recipes(store, {"limit": 500})).startswith(
        "Showing 25 of 25 recipes:"
    )
    assert result_text(list_recipes(store, {"offset": 20})).startswith(
        "Showing 5 of 25 recipes:"
    )


def test_search_handler_without_matches(store, tea_recipe):
    store.save(tea_recipe)

    result = search_recipes(store, {"query": "lasagna"})

    assert not result.isError
    assert result_text(result) == 'No recipes found matching "lasagna"'


def test_search_handler_with_matches(store, tea_recipe):
    store.save(tea_recipe)

    text = result_text(search_recipes(store, {"query": "tea"}))

    header, payload = text.split("\n\n", 1)
    assert header == 'Found 1 recipe(s) matching "tea":'
    assert json.loads(payload)[0]["name"] == "Tea"


def test_get_handler_raises_not_found(store, registry):
    handler = registry.get("get_recipe").handler
    with pytest.raises(RecipeNotFoundError):
        handler(store, {"id": "missing"})
