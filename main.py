"""
main.py
-------
Entry point for the IDLink LINE bot.

Responsibilities:
    - Open the configured store (Firebase, PostgreSQL or in-memory).
    - Build the LINE Messaging API client and the webhook parser.
    - Wire LinkService, MessageService and EventHandler once and hand them
      to the FastAPI routes.
    - Serve the app with uvicorn.
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from linebot.v3.messaging import AsyncApiClient, AsyncMessagingApi, Configuration
from linebot.v3.webhook import WebhookParser

from config import (
    HOST,
    LINE_CHANNEL_ACCESS_TOKEN,
    LINE_CHANNEL_SECRET,
    PORT,
    STORE_BACKEND,
)
from handlers.event_handler import EventHandler
from repositories.link_repo import (
    FirebaseLinkRepository,
    InMemoryLinkRepository,
    LinkRepository,
    PostgresLinkRepository,
)
from routers import pages, register, webhook
from services.link_service import LinkService
from services.message_service import MessageService
from utils.logger import get_logger, uvicorn_log_config

logger = get_logger(__name__)


def open_repository(backend: str = STORE_BACKEND) -> LinkRepository:
    """
    Connect to the configured store and return its repository.

    Raises:
        ValueError: Unknown backend name.
    """
    if backend == "firebase":
        from db.firebase import get_users_ref, init_firebase
        init_firebase()
        return FirebaseLinkRepository(get_users_ref())

    if backend == "postgres":
        from db.connection import init_pool
        from db.init_db import create_tables
        init_pool()
        create_tables()
        return PostgresLinkRepository()

    if backend == "memory":
        logger.warning("Using the in-memory store; links are lost on restart.")
        return InMemoryLinkRepository()

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


def close_repository(backend: str = STORE_BACKEND) -> None:
    if backend == "firebase":
        from db.firebase import close_firebase
        close_firebase()
    elif backend == "postgres":
        from db.connection import close_pool
        close_pool()


def create_app(
    link_service: Optional[LinkService] = None,
    message_service: Optional[MessageService] = None,
    webhook_parser: Optional[WebhookParser] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Services passed in are used as-is (tests); missing ones are created
    from the environment when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        api_client = None
        owns_store = not hasattr(app.state, "link_service")

        # ── 1. Store ──────────────────────────────────────
        if owns_store:
            logger.info(f"Opening {STORE_BACKEND} store...")
            try:
                app.state.link_service = LinkService(open_repository())
            except Exception as e:
                logger.error(f"Failed to open the store: {e}")
                raise

        # ── 2. LINE client ────────────────────────────────
        if not hasattr(app.state, "message_service"):
            if not LINE_CHANNEL_ACCESS_TOKEN:
                logger.warning("LINE_CHANNEL_ACCESS_TOKEN is not set; sends will fail.")
            api_client = AsyncApiClient(Configuration(access_token=LINE_CHANNEL_ACCESS_TOKEN))
            app.state.message_service = MessageService(AsyncMessagingApi(api_client))

        if not hasattr(app.state, "webhook_parser"):
            if not LINE_CHANNEL_SECRET:
                logger.warning("LINE_CHANNEL_SECRET is not set; every webhook will be rejected.")
            app.state.webhook_parser = WebhookParser(LINE_CHANNEL_SECRET)

        # ── 3. Event routing ──────────────────────────────
        app.state.event_handler = EventHandler(app.state.link_service, app.state.message_service)
        logger.info("🚀 IDLink bot is ready.")

        yield

        # ── 4. Cleanup on shutdown ────────────────────────
        if api_client is not None:
            await api_client.close()
        if owns_store:
            close_repository()
        logger.info("IDLink bot stopped.")

    app = FastAPI(title="IDLink LINE Bot", version="1.0.0", lifespan=lifespan)

    if link_service is not None:
        app.state.link_service = link_service
    if message_service is not None:
        app.state.message_service = message_service
    if webhook_parser is not None:
        app.state.webhook_parser = webhook_parser
    if link_service is not None and message_service is not None:
        app.state.event_handler = EventHandler(link_service, message_service)

    app.include_router(pages.router, tags=["pages"])
    app.include_router(webhook.router, tags=["webhook"])
    app.include_router(register.router, tags=["register"])
    return app


def main() -> None:
    """Run the bot server."""
    logger.info(
        f"Starting server on {HOST}:{PORT} "
        "(POST /webhook, GET /register, GET /link, GET /generate-qr)"
    )
    uvicorn.run(create_app(), host=HOST, port=PORT, log_config=uvicorn_log_config())


if __name__ == "__main__":
    main()
