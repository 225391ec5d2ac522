"""FastAPI application entrypoint. No business logic; only wiring, lifecycle and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api import router
from storefront.api.responders import responder_for
from storefront.core.config import Settings, get_settings
from storefront.core.database import Database
from storefront.core.errors import AppError, FieldValidationError
from storefront.services.images import ImageStore, LocalImageStore

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the database and image store at startup; dispose the engine at shutdown."""
    settings: Settings = app.state.settings
    database = Database.from_settings(settings)
    if settings.DB_CREATE_TABLES:
        database.create_all()
    app.state.database = database
    if app.state.image_store is None:
        app.state.image_store = LocalImageStore.from_settings(settings)
    # The static mount needs the uploads directory to exist before the first request.
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    logger.info("Storefront started: env=%s", settings.APP_ENV)
    try:
        yield
    finally:
        database.dispose()
        logger.info("Storefront stopped")


async def app_error_handler(request: Request, exc: AppError) -> Response:
    return responder_for(request).error(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not Found - {request.url.path}"
    return responder_for(request).error(AppError(message, exc.status_code))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return responder_for(request).error(FieldValidationError("; ".join(parts) or "Invalid request"))


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return responder_for(request).error(AppError("Internal server error"))


def create_app(
    settings: Settings | None = None,
    image_store: ImageStore | None = None,
) -> FastAPI:
    """Build the application. Settings and the image store can be injected (tests, other backends)."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    app = FastAPI(
        title="Storefront",
        version="0.1.0",
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url="/redoc" if settings.APP_ENV == "dev" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.image_store = image_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "%s %s %s %.1fms",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - start) * 1000,
            )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )
    app.include_router(router)
    return app


app = create_app()
