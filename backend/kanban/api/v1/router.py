"""
API v1 router registry.
"""
from fastapi import APIRouter
from kanban.modules.board.router import router as boards_router
from kanban.modules.board_list.router import router as lists_router
from kanban.modules.card.router import router as cards_router
from kanban.modules.workspace.router import router as workspaces_router

from .health import router as health_router
from .realtime import router as realtime_router

# Create v1 router
v1_router = APIRouter(prefix="/v1")

# Include all v1 routers
v1_router.include_router(workspaces_router, tags=["Workspaces"])
v1_router.include_router(boards_router, tags=["Boards"])
v1_router.include_router(lists_router, tags=["Lists"])
v1_router.include_router(cards_router, tags=["Cards"])
v1_router.include_router(realtime_router, tags=["Realtime"])
v1_router.include_router(health_router, tags=["Health & Monitoring"])


# API information endpoint
@v1_router.get("/info")
async def api_info():
    """Get API v1 information."""
    return {
        "version": "v1",
        "endpoints": {
            "workspaces": "/api/v1/workspaces",
            "boards": "/api/v1/boards",
            "lists": "/api/v1/lists",
            "cards": "/api/v1/cards",
            "realtime": "/api/v1/ws/boards/{board_id}",
            "health": "/api/v1/health",
            "metrics": "/api/v1/metrics"
        }
    }
