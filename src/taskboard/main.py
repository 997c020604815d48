from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .repositories import Repository, open_repository
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "List, create, edit, complete and delete tasks.",
    },
]


def configure_logging(level: str) -> None:
    """Install a basic root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    root.setLevel(level)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the Task Store API.

    Args:
        settings: Settings to use; read from the environment when omitted.
        repository: An already opened repository. When omitted the lifespan
            opens one from settings on startup and closes it on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        if repository is not None:
            yield
            return
        repo = open_repository(settings)
        app.state.repository = repo
        logger.info("Opened %s task store", settings.persistence_backend)
        try:
            yield
        finally:
            repo.close()
            logger.info("Closed %s task store", settings.persistence_backend)

    app = FastAPI(
        title="Taskboard",
        description="Task Store API: a thin HTTP layer over a single tasks table.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    if repository is not None:
        app.state.repository = repository

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(tasks_router.TaskOperationFailed)
    async def operation_failed_handler(request: Request, exc: tasks_router.TaskOperationFailed) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Invalid input is reported like any other failure of the operation:

            400 {"message": "<fixed message of the operation>"}
        """
        route = request.scope.get("route")
        message = tasks_router.FAILURE_MESSAGES.get(getattr(route, "name", ""), "Request validation failed")
        logger.warning("%s reason: %s", message, exc.errors())
        return JSONResponse(status_code=400, content={"message": message})

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(tasks_router.router)
    return app


app = create_app()
