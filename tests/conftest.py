#!/usr/bin/env python3
"""
Pytest configuration and fixtures for Recipe Saver testing
"""

import logging
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add the src directory to the path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from app import ProtocolEngine, PushChannel, SessionManager, build_recipe_registry
from config import Settings
from server import RecipeServer
from store import RecipeStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing"""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield tmp_dir


@pytest.fixture
def db_path(temp_dir):
    return Path(temp_dir) / "recipes.db"


@pytest.fixture
def store(db_path):
    """A fresh recipe store backed by a temporary database file"""
    recipe_store = RecipeStore(db_path)
    yield recipe_store
    recipe_store.close()


@pytest.fixture
def registry():
    return build_recipe_registry()


@pytest.fixture
def engine(store, registry):
    """A protocol engine that has not been initialized yet"""
    return ProtocolEngine("test-session", registry, store)


@pytest.fixture
def session_manager(store, registry):
    return SessionManager(store, registry)


@pytest.fixture
def channel():
    return PushChannel()


@pytest.fixture
def settings(db_path):
    return Settings(DB_PATH=str(db_path), SSE_PING_SECONDS=60)


@pytest.fixture
def server(settings, store):
    return RecipeServer(logging.getLogger("recipe_saver.test"), settings, store=store)


@pytest.fixture
def client(server):
    """HTTP client over the full application"""
    with TestClient(server.app) as test_client:
        yield test_client


# Test data fixtures
@pytest.fixture
def tea_recipe():
    return {
        "name": "Tea",
        "ingredients": ["water", "tea leaves"],
        "instructions": ["boil", "steep"],
    }


@pytest.fixture
def sample_recipes():
    """Recipes covering every searchable field"""
    return {
        "carbonara": {
            "name": "Spaghetti Carbonara",
            "description": "Classic Roman pasta with eggs and pecorino",
            "ingredients": ["400g spaghetti", "4 eggs", "100g guanciale"],
            "instructions": ["Boil pasta", "Fry guanciale", "Mix with eggs"],
            "prepTime": 10,
            "cookTime": 15,
            "servings": 4,
            "cuisine": "Italian",
            "tags": ["dinner", "quick"],
            "source": "Claude",
        },
        "tacos": {
            "name": "Fish Tacos",
            "description": "Crispy fish with lime slaw",
            "ingredients": ["white fish", "tortillas", "cabbage"],
            "instructions": ["Fry fish", "Assemble"],
            "cuisine": "Mexican",
            "tags": ["seafood"],
        },
        "salad": {
            "name": "Orzo Salad",
            "ingredients": ["orzo PASTA", "feta", "olives"],
            "instructions": ["Cook orzo", "Toss"],
            "tags": ["vegetarian"],
        },
    }
