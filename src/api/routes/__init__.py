from .info import router as info_router
from .recipes import router as recipes_router

__all__ = ["info_router", "recipes_router"]
