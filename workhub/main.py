"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from workhub.api.v1 import admin, auth, cron, dashboard, line, profile, reports
from workhub.application.errors import WorkHubError
from workhub.config import get_settings
from workhub.infrastructure.db.session import check_db_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Last resort for anything the exception handlers did not map."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse({"error": "予期しないエラーが発生しました"}, status_code=500)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="WorkHub",
        debug=settings.DEBUG,
    )

    @app.exception_handler(WorkHubError)
    async def workhub_error_handler(request: Request, exc: WorkHubError):
        if exc.status_code >= 500:
            logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": "データベースとの通信に失敗しました"}, status_code=503)

    app.add_middleware(ErrorLoggingMiddleware)

    # Middleware
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(reports.router)
    app.include_router(dashboard.router)
    app.include_router(profile.router)
    app.include_router(line.router)
    app.include_router(cron.router)
    app.include_router(admin.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks the database)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "workhub.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
