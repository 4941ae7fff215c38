"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from fileshare import __version__
from fileshare.config import Settings, settings
from fileshare.middleware import BodySizeLimitMiddleware
from fileshare.routes.files import router as files_router
from fileshare.schemas.file import HealthResponse
from fileshare.services.acceptance import build_acceptance_policy
from fileshare.services.blob_store import build_blob_store
from fileshare.services.errors import FileShareError
from fileshare.services.metadata_store import build_metadata_store

logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the stores on startup, release them on shutdown."""
        app.state.settings = config
        app.state.blob_store = build_blob_store(config)
        app.state.metadata_store = build_metadata_store(config)
        app.state.acceptance_policy = build_acceptance_policy(config)
        await app.state.metadata_store.start()
        logger.info(
            f"Storage ready (blobs={config.BLOB_STORE_TYPE}, metadata={config.METADATA_STORE_TYPE}, "
            f"limit={config.MAX_UPLOAD_BYTES} bytes)"
        )

        yield

        await app.state.metadata_store.close()

    app = FastAPI(
        title="File Share API",
        version=__version__,
        description="Upload files and share them through stable URLs.",
        lifespan=lifespan,
    )

    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=config.MAX_UPLOAD_BYTES + config.MULTIPART_OVERHEAD_BYTES,
    )

    # CORS, outermost so early 413s still carry the headers
    origins = [o.strip() for o in config.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FileShareError)
    async def file_share_error_handler(request: Request, exc: FileShareError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "Malformed request"}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} crashed: {exc}", exc_info=exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Liveness probe."""
        return HealthResponse(timestamp=datetime.now(timezone.utc))

    app.include_router(files_router)

    # Companion UI, mounted last so it never shadows the API routes
    if config.FRONTEND_DIR:
        frontend = Path(config.FRONTEND_DIR)
        if frontend.is_dir():
            app.mount("/", StaticFiles(directory=frontend, html=True), name="frontend")
        else:
            logger.warning(f"FRONTEND_DIR {frontend} is not a directory; UI not served")

    return app


app = create_app()
