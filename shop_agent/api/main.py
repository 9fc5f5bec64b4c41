"""
FastAPI application for Shop Agent.

Exposes conversation sessions over HTTP so that a web front end can drive
the agent.

Usage:
    # Development server with auto-reload
    uvicorn shop_agent.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn shop_agent.api.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import config
from ..tools.registry import ToolRegistry
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import health, sessions, store
from .sessions import get_session_manager


def configure_logging():
    """Configure logging based on LOG_LEVEL environment variable."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("shop_agent").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Shop Agent API server")

    logger.info("=" * 60)
    logger.info("PROVIDERS")
    logger.info(f"  Default: {config.provider.default}")
    logger.info(f"  DeepSeek: {config.deepseek.model} @ {config.deepseek.base_url}")
    logger.info(f"  Gemini: {config.gemini.model}")
    logger.info(f"  Max dispatches per turn: {config.agent.max_loops}")

    logger.info("-" * 60)
    logger.info("STORE DATA")
    manager = get_session_manager()
    logger.info(f"  Source: {config.store.data_path or 'built-in demo data'}")
    logger.info(
        f"  {len(manager.store.products)} products, {len(manager.store.orders)} orders, "
        f"topics: {', '.join(manager.store.policy_topics)}"
    )

    logger.info("-" * 60)
    logger.info("REGISTERED TOOLS")
    for name, tool in ToolRegistry.all_tools().items():
        logger.info(f"  - {name}: {tool.description[:60]}...")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(
        public_key=config.langfuse.public_key,
        secret_key=config.langfuse.secret_key,
        host=config.langfuse.host,
        debug=config.langfuse.debug,
    )
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {config.langfuse.host or 'https://cloud.langfuse.com'}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("=" * 60)

    yield

    logger.info("Shutting down Shop Agent API server")
    await manager.close_all()
    shutdown_tracing()
    logger.info("Tracing client shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Shop Agent API",
        description=(
            "Customer-service agent for Gemini Shop. Create a session, then post "
            "user messages to it; the agent answers using product, order and "
            "policy lookups."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # In production, restrict to specific origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(store.router, tags=["Store"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": _jsonable_errors(exc)},
        )

    return app


def _jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the raw input, which may not be JSON serializable."""
    return [{k: v for k, v in err.items() if k not in ("input", "ctx")} for err in exc.errors()]


app = create_app()


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "shop_agent.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run_server()
