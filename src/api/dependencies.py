from fastapi import Request

from app import SessionManager
from store import RecipeStore


def get_store(request: Request) -> RecipeStore:
    return request.app.state.store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager
