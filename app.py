"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient
from sentry_sdk.integrations.logging import LoggingIntegration

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.log_notifier import LogCodeNotifier
from infrastructure.email.protocol import CodeNotifier
from repositories.account_repository import USERS_COLLECTION, AccountRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.credential_service import CredentialService
from shared.crypto import CodeHasher, SecretHasher
from shared.logging import get_logger, setup_logging
from shared.tokens import TokenIssuer

AUTH_PREFIX = "/api/auth"

log = get_logger(__name__)


def build_credential_service(
    settings: AppSettings,
    accounts: AccountRepository,
    notifier: CodeNotifier,
) -> tuple[CredentialService, TokenIssuer]:
    """Wire the leaf components from *settings* into a CredentialService."""
    auth = settings.auth
    token_issuer = TokenIssuer.from_settings(auth)
    service = CredentialService(
        accounts=accounts,
        secret_hasher=SecretHasher(
            time_cost=auth.password_hash_time_cost,
            memory_cost=auth.password_hash_memory_cost,
            parallelism=auth.password_hash_parallelism,
        ),
        code_hasher=CodeHasher(auth.hmac_verification_code_secret),
        token_issuer=token_issuer,
        notifier=notifier,
        code_ttl_seconds=auth.code_ttl_seconds,
    )
    return service, token_issuer


SECURITY_HEADERS = {
    "Content-Security-Policy": "frame-ancestors 'none'",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}
HSTS_HEADER = "max-age=15552000; includeSubDomains"


def register_security_headers(app: FastAPI, hsts: bool = False) -> None:
    """Add hardening headers to every response.

    Strict-Transport-Security is only sent when *hsts* is set, i.e. in
    production behind TLS.
    """

    @app.middleware("http")
    async def apply_security_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if hsts:
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)
        return response


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, env=settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        accounts = AccountRepository(db[USERS_COLLECTION])
        await accounts.ensure_indexes()

        service, token_issuer = build_credential_service(
            settings, accounts, LogCodeNotifier()
        )

        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.settings = settings
        app.state.token_issuer = token_issuer
        app.state.credential_service = service
        log.info("app_started", db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_security_headers(app, hsts=settings.is_production)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router, prefix=AUTH_PREFIX)

    return app
