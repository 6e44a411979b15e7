"""Nexus Health MCP Server - Entry point.

Serves the MCP tools over streamable HTTP, next to a health check and an
endpoint that hands out opaque user ids.
"""

import logging
import uuid

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Mount

from .shell.config import AppConfig
from .shell.mcp_server import mcp, current_user_id


config = AppConfig.from_env()

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "healthy", "service": "nexus-health-mcp"})


async def create_user(request: Request) -> JSONResponse:
    """Issue a fresh opaque user id for a new client."""
    user_id = str(uuid.uuid4())
    logger.info("Issued user id: %s", user_id[:8])
    return JSONResponse({
        "user_id": user_id,
        "message": f"Send this id in the {USER_ID_HEADER} header on every MCP request.",
    })


# ==================== User Context Middleware ====================


class UserContextMiddleware(BaseHTTPMiddleware):
    """Bind the X-User-Id header of MCP requests to the current user."""

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/mcp"):
            return await call_next(request)

        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        if user_id:
            current_user_id.set(user_id)
            logger.debug("Request for user: %s", user_id[:8])

        return await call_next(request)


# ==================== Create ASGI App ====================


def create_app(app_config: AppConfig | None = None) -> Starlette:
    """Build the Starlette app.

    Args:
        app_config: Settings to use; defaults to the environment config

    Returns:
        App with /health, POST /users and the MCP endpoint under /mcp
    """
    app_config = app_config or config
    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/users", create_user, methods=["POST"]),
        # Mount MCP app at root - it handles /mcp/ path internally
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=app_config.cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(UserContextMiddleware),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


app = create_app()


def main() -> None:
    """Run the server."""
    logger.info("Starting Nexus Health MCP server on %s:%d", config.host, config.port)

    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
