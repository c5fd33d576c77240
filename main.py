"""
Block Gateway — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as api_router
from blocks.dispatcher import BlockDispatcher
from blocks.registry import BlockRegistry
from config.settings import config
from connectors.routes import router as oauth_router
from connectors.token_manager import NEW_ACCESS_TOKEN_HEADER, TOKEN_REFRESHED_HEADER
from connectors.token_store import TokenStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3", "googleapiclient.discovery_cache"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Block Gateway",
        version="1.0.0",
        description="OAuth token handling and block dispatch for Sheets, Gmail and Airtable.",
    )

    # CORS: refreshed-token headers must be readable by the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[NEW_ACCESS_TOKEN_HEADER, TOKEN_REFRESHED_HEADER],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(oauth_router, prefix="/oauth")
    app.include_router(api_router)

    registry = BlockRegistry()
    registry.auto_discover_blocks()

    app.state.token_store = TokenStore()
    app.state.block_dispatcher = BlockDispatcher(registry)

    @app.on_event("startup")
    async def on_startup():
        if not (config.google_client_id and config.google_client_secret):
            logger.warning(
                "Google client id/secret not configured — /oauth routes need them in the request body"
            )
        if not config.spreadsheet_id:
            logger.warning("SPREADSHEET_ID not set — direct Sheets endpoints will fail")
        logger.info("Blocks available: %s", [b["blockId"] for b in registry.list_blocks()])
        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
