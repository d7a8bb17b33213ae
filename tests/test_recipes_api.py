#!/usr/bin/env python3
"""
Test the REST recipe endpoints
"""

import pytest

BASE = "/api/recipes"


def test_create_and_get(client, tea_recipe):
    created = client.post(BASE, json=tea_recipe)

    assert created.status_code == 201
    body = created.json()
    assert body["id"]
    assert body["ingredients"] == ["water", "tea leaves"]
    assert body["createdAt"] == body["updatedAt"]

    fetched = client.get(f"{BASE}/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


@pytest.mark.parametrize(
    "payload",
    [
        {"ingredients": [], "instructions": []},
        {"name": "Soup", "instructions": []},
        {"name": "Soup", "ingredients": "water", "instructions": []},
        {"name": "Soup", "ingredients": []},
        ["not", "an", "object"],
    ],
)
def test_create_rejects_incomplete_input(client, payload):
    response = client.post(BASE, json=payload)

    assert response.status_code == 400
    assert response.json()["error"]


def test_create_rejects_bad_field_values(client, tea_recipe):
    response = client.post(BASE, json={**tea_recipe, "servings": 0})
    assert response.status_code == 400


def test_get_missing_is_404(client):
    response = client.get(f"{BASE}/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Recipe not found"}


def test_list_pages_newest_first(client, sample_recipes):
    ids = [client.post(BASE, json=data).json()["id"] for data in sample_recipes.values()]

    body = client.get(BASE, params={"limit": 2, "offset": 0}).json()

    assert body["total"] == 3
    assert body["limit"] == 2
    assert body["offset"] == 0
    assert [r["id"] for r in body["recipes"]] == [ids[2], ids[1]]


def test_list_normalizes_bad_paging(client, tea_recipe):
    client.post(BASE, json=tea_recipe)

    body = client.get(BASE, params={"limit": "abc", "offset": "-4"}).json()

    assert body["limit"] == 50
    assert body["offset"] == 0
    assert len(body["recipes"]) == 1


def test_list_clamps_limit(client):
    assert client.get(BASE, params={"limit": 1000}).json()["limit"] == 100


def test_search_with_query(client, sample_recipes):
    for data in sample_recipes.values():
        client.post(BASE, json=data)

    body = client.get(BASE, params={"q": "pasta"}).json()

    assert body["total"] == 2
    assert {r["name"] for r in body["recipes"]} == {"Spaghetti Carbonara", "Orzo Salad"}
    assert "limit" not in body


def test_update_is_partial(client, sample_recipes):
    original = client.post(BASE, json=sample_recipes["carbonara"]).json()

    response = client.put(f"{BASE}/{original['id']}", json={"cuisine": "Roman"})

    assert response.status_code == 200
    updated = response.json()
    assert updated["cuisine"] == "Roman"
    assert updated["updatedAt"] >= original["updatedAt"]
    for key in ("name", "description", "ingredients", "instructions", "tags", "createdAt"):
        assert updated[key] == original[key]


def test_update_missing_is_404(client):
    response = client.put(f"{BASE}/missing", json={"name": "X"})
    assert response.status_code == 404


def test_update_rejects_bad_values(client, tea_recipe):
    recipe = client.post(BASE, json=tea_recipe).json()
    response = client.put(f"{BASE}/{recipe['id']}", json={"prepTime": -1})
    assert response.status_code == 400


def test_delete(client, tea_recipe):
    recipe = client.post(BASE, json=tea_recipe).json()

    assert client.delete(f"{BASE}/{recipe['id']}").status_code == 204
    assert client.get(f"{BASE}/{recipe['id']}").status_code == 404
    assert client.delete(f"{BASE}/{recipe['id']}").status_code == 404
    assert client.get(BASE).json()["total"] == 0


def test_rest_and_tools_share_the_store(client, server, tea_recipe):
    recipe = client.post(BASE, json=tea_recipe).json()
    assert server.store.get(recipe["id"]).name == "Tea"
