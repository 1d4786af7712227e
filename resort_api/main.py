import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from resort_api.api import router as api_router
from resort_api.core.config import settings
from resort_api.core.database import close_db, init_db
from resort_api.core.exceptions import register_exception_handlers, server_error_response
from resort_api.utils.logging_utils import bind_log_context, reset_log_context, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database connection for the lifetime of the process
    """
    if not settings.JWT_SECRET:
        logger.warning("RESORT_JWT_SECRET is not set; registration and login will be refused")

    await init_db(create_schema=settings.GENERATE_SCHEMAS)
    try:
        yield
    finally:
        await close_db()


async def log_requests(request: Request, call_next):
    """
    Bind request context for logging and turn unexpected failures into a 500
    """
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = bind_log_context(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    start = time.perf_counter()
    try:
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = server_error_response()

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={"status_code": response.status_code, "duration_ms": duration_ms},
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        reset_log_context(token)


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        use_lifespan: Open and close the database with the app. Tests that
            manage the Tortoise connection themselves pass False.
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan if use_lifespan else None,
    )

    # Registered before CORS so that CORS wraps it, 500 responses included
    app.middleware("http")(log_requests)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health() -> Dict[str, Any]:
        return {
            "message": f"{settings.PROJECT_NAME} is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "healthy",
        }

    @app.get("/", tags=["health"])
    async def root() -> Dict[str, Any]:
        return {
            "message": f"Welcome to {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "endpoints": {
                "users": f"{settings.API_PREFIX}/users",
                "enquiries": f"{settings.API_PREFIX}/enquiries",
                "health": "/health",
            },
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn"""
    import uvicorn

    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        json_format=settings.LOG_JSON,
    )
    logger.info("Starting %s on %s:%s", settings.PROJECT_NAME, settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
