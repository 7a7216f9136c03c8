"""Health check endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    sessions = request.app.state.sessions
    return JSONResponse(
        {
            "status": "ok",
            "sessions": len(sessions),
            **sessions.capabilities.summary(),
            "widget_embedding": sessions.capabilities.embedding.value,
        }
    )


health_routes = [
    Route("/health", health_check, methods=["GET"]),
]
