# app/main.py
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from app.aws.s3_ops import ObjectStore
from app.core.errors import register_exception_handlers
from app.core.logging_config import logger, setup_logging
from app.core.settings import Settings, get_settings
from app.db import create_tables, make_engine, make_session_factory
from app.infra.s3_client import build_s3_client
from app.routers import files, folders, uploads
from app.services.content import ContentServer
from app.services.direct_upload import DirectUploader
from app.services.folders import FolderRegistry
from app.services.grants import GrantIssuer
from app.services.lifecycle import LifecycleManager
from app.services.reconciler import MetadataReconciler


def create_app(
    settings: Optional[Settings] = None,
    *,
    s3_client=None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    """
    Build the app. Process-wide clients (S3 client, SQLAlchemy engine) are
    constructed once here and injected into the components via app.state.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    engine = engine or make_engine(settings.DATABASE_URL, pool_timeout=settings.DB_POOL_TIMEOUT)
    s3_client = s3_client or build_s3_client(settings)
    store = ObjectStore(s3_client, settings.S3_BUCKET)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_tables(engine)
        logger.info("startup", service=settings.APP_NAME, bucket=settings.S3_BUCKET)
        yield
        engine.dispose()
        logger.info("shutdown", service=settings.APP_NAME)

    app = FastAPI(title="Session Files", version="0.1.0", lifespan=lifespan)

    app.state.session_factory = make_session_factory(engine)
    app.state.grant_issuer = GrantIssuer(
        store,
        expires_in=settings.PRESIGN_EXPIRY_SEC,
        max_upload_bytes=settings.MAX_UPLOAD_MB * 1024 * 1024,
    )
    app.state.reconciler = MetadataReconciler(uploaded_by=settings.DEFAULT_UPLOADED_BY)
    app.state.direct_uploader = DirectUploader(
        store,
        app.state.reconciler,
        max_upload_bytes=settings.DIRECT_UPLOAD_MAX_MB * 1024 * 1024,
    )
    app.state.content_server = ContentServer(
        store,
        view_cache_max_age=settings.VIEW_CACHE_MAX_AGE,
        proxy_cache_max_age=settings.PROXY_CACHE_MAX_AGE,
    )
    app.state.lifecycle = LifecycleManager(store)
    app.state.folders = FolderRegistry(conflict_retries=settings.FOLDER_CONFLICT_RETRIES)

    # ----------------------------------------------------
    # Health
    # ----------------------------------------------------
    @app.get("/health", include_in_schema=True)
    def health() -> dict:
        return {"status": "ok"}

    # ----------------------------------------------------
    # Logging middleware
    # ----------------------------------------------------
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start = time.time()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            endpoint=str(request.url.path),
            method=request.method,
        )
        logger.info("request_started")
        response = await call_next(request)
        latency_ms = round((time.time() - start) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        logger.info("request_finished", status_code=response.status_code, latency_ms=latency_ms)
        return response

    # ----------------------------------------------------
    # Middleware
    # ----------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Content-Length", "Content-Disposition", "Accept-Ranges"],
        max_age=86400,
    )

    register_exception_handlers(app)

    # ----------------------------------------------------
    # Routers
    # ----------------------------------------------------
    app.include_router(uploads.router)
    app.include_router(files.router)
    app.include_router(folders.router)

    return app


app = create_app()
