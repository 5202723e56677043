from contextlib import asynccontextmanager
from fastapi import FastAPI

from wallmag_auth.infrastructure.db.pool import get_pool, close_pool
from wallmag_auth.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter
from wallmag_auth.infrastructure.http.client import (
    close_http_client,
    open_http_client,
    get_http_client,
)
from wallmag_auth.infrastructure.redis_cache.pool import get_redis, close_redis
from wallmag_auth.logging import setup_logging
from wallmag_auth.presentation.api import api
from wallmag_auth.presentation.errors import register_exception_handlers
from wallmag_auth.presentation.middleware import install_security_middleware
from wallmag_auth.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    pool = get_pool()
    if not getattr(pool, "is_open", False):
        await pool.open()

    await open_http_client()

    get_redis()

    # One shared email adapter on top of the shared HTTP client
    email_adapter = HttpSmtpEmailAdapter(
        base_url=settings.smtp_base_url,
        sender=settings.email_sender,
        client=get_http_client(),
    )
    app.state.email_adapter = email_adapter

    try:
        yield
    finally:
        # shutdown
        await email_adapter.aclose()  # leaves the shared client open
        await close_http_client()
        await close_redis()
        await close_pool()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Wall-Magazine Auth API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    register_exception_handlers(app)
    install_security_middleware(app)
    app.include_router(api)
    return app


app = create_app()
