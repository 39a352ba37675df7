import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hardban_lab import __version__
from hardban_lab.config import settings
from hardban_lab.exceptions import AppError
from hardban_lab.ratelimit import limiter
from hardban_lab.repositories import clear_all_caches
from hardban_lab.routers import (
    admin,
    artists,
    auth,
    dashboard,
    distribution,
    music,
    payouts,
    publishing,
    releases,
    royalties,
)
from hardban_lab.storage import resolve_upload

logger = logging.getLogger(__name__)


def error_body(message: str, errors=None) -> dict:
    return {"success": False, "message": message, "errors": list(errors or [])}


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [f"{_field_name(e['loc'])}: {e['msg']}" for e in exc.errors()]
        return JSONResponse(status_code=400, content=error_body("Validation failed", errors))

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit {exc.detail} exceeded on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=429,
            content=error_body("Rate limit exceeded. Please try again later.", [f"limit: {exc.detail}"]),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Route not found", "path": request.url.path},
            )
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content=error_body("Database operation failed"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        message = "Internal server error" if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content=error_body(message))


def create_app() -> FastAPI:
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    app = FastAPI(title="HardbanRecords Lab", version=__version__, docs_url="/docs", redoc_url="/redoc")
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for module in (auth, admin, artists, releases, royalties, payouts, distribution, music, publishing, dashboard):
        app.include_router(module.router)

    @app.get("/health")
    @limiter.exempt
    def health():
        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.get("/uploads/{file_path:path}")
    def serve_upload(file_path: str):
        return FileResponse(resolve_upload(file_path))

    clear_all_caches()
    logger.info(f"HardbanRecords Lab {__version__} started ({settings.environment})")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("hardban_lab.main:app", host="0.0.0.0", port=8000)
