"""Resource Library — FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, settings as default_settings
from app.database import Database
from app.errors import AppError, InternalError
from app.middleware.rate_limit import build_limiter
from app.routers import auth, meta, resources, users
from app.services.seed import seed_defaults
from app.services.storage import LocalStorage

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error(exc.status_code, message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request")
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    return _error(400, f"Invalid {field or 'request'}: {first.get('msg', 'invalid value')}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, InternalError.message)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, the upload directory and default data; dispose the pool on exit."""
    settings: Settings = app.state.settings
    app.state.storage.ensure_root()
    app.state.db.create_all()
    with app.state.db.session() as db:
        seed_defaults(db, settings)
    logger.info("Resource library ready (uploads in %s)", settings.UPLOAD_DIR)
    yield
    app.state.db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Resource Library",
        description="Educational resource sharing for schools.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.storage = LocalStorage(settings.UPLOAD_DIR)

    # Rate limiting
    app.state.limiter = build_limiter(settings)

    # Errors -> {"success": false, "message": ...}
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(meta.router)
    app.include_router(resources.router)

    # Stored files, read-only
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

    @app.get("/")
    def root():
        return {"success": True, "data": {"name": "Resource Library API", "version": "1.0.0", "docs": "/docs"}}

    @app.get("/health")
    def health():
        return {"success": True, "data": {"status": "ok"}}

    return app


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    import uvicorn
    uvicorn.run(
        app,
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
