"""
FastAPI Application - Webhook server setup
==========================================

This module builds the bot (rule store, router, modules, sender) and
wraps it in a FastAPI application that receives platform callbacks.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.config import Config, load_config
from core.logging import setup_logging, get_logger
from modules.keyword import KeywordModule
from rules.store import RuleStore
from services.groupme import GroupMeClient
from services.router import Router

logger = get_logger("web.app")


def build_router(config: Config, store: RuleStore, sender=None) -> Router:
    """
    Create the router and register all modules.

    Registration order is handling priority.

    Args:
        config: Application configuration
        store: Loaded keyword rule store
        sender: Outbound sender (defaults to a GroupMeClient)

    Returns:
        Router with modules registered
    """
    if sender is None:
        sender = GroupMeClient(config)

    router = Router(config, sender=sender)
    KeywordModule(router, store)
    return router


def create_app(
    config: Optional[Config] = None,
    store: Optional[RuleStore] = None,
    router: Optional[Router] = None,
    debug: bool = False
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration
        store: Keyword rule store (loaded from config if not provided)
        router: Router (built from config if not provided)
        debug: Enable debug mode

    Returns:
        Configured FastAPI application

    Raises:
        RuleStoreError: If the keyword rule file is malformed
    """
    if config is None:
        config = load_config()

    setup_logging(
        log_dir=config.log_dir or None,
        log_level="DEBUG" if debug or config.debug else config.log_level,
        console_output=True
    )

    if store is None:
        store = RuleStore(config.keyword_config_file)
        store.load()

    if router is None:
        router = build_router(config, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Flushing keyword rules before shutdown")
        store.close()

    app = FastAPI(
        title="Keyword Bot",
        description="Group chat keyword auto-reply bot",
        version="1.0.0",
        debug=debug or config.debug,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.store = store
    app.state.router = router

    from .routes import router as callback_router
    logger.info("Creating callback route")
    app.include_router(callback_router, prefix="")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc) if debug else "An error occurred"}
        )

    logger.info("Web application created")

    return app


def run_app(
    config: Optional[Config] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False
) -> None:
    """
    Run the webhook server.

    Args:
        config: Application configuration
        host: Host address to bind (defaults to config)
        port: Port to listen on (defaults to config)
        debug: Enable debug mode
    """
    if config is None:
        config = load_config()

    app = create_app(config=config, debug=debug)

    host = host or config.host
    port = port or config.port
    logger.info(f"Server listening on port {port}")

    import uvicorn
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info"
    )
