from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from app import SessionManager
from app.protocol import SERVER_VERSION

from ..dependencies import get_session_manager
from ..models.schemas import HealthResponse

router = APIRouter()

SERVICE_NAME = "recipe-saver-mcp"


@router.get(
    "/",
    status_code=status.HTTP_200_OK,
    summary="Describe the service",
)
async def get_info() -> Dict[str, Any]:
    return {
        "service": "Recipe Saver MCP Server",
        "version": SERVER_VERSION,
        "mcp": {
            "sse": "/sse",
            "messages": "/messages",
        },
        "api": {
            "recipes": "/api/recipes",
        },
        "docs": "Add this server to an MCP client config, or connect any MCP-compatible LLM.",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
)
async def health_check(
    session_manager: SessionManager = Depends(get_session_manager),
) -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVER_VERSION,
        "active_sessions": session_manager.active_count,
    }
