import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import init_db
from app.deps import templates
from app.errors import InvalidRequest, NotFound, QuotaExceeded


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: tables and the reconciliation scheduler
    from app.scheduler.setup import start_scheduler

    init_db()
    scheduler = start_scheduler()
    yield
    # Shutdown
    from app.scheduler.runs import shutdown_runs

    if scheduler:
        scheduler.shutdown(wait=False)
    shutdown_runs()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    app = FastAPI(title=settings.APP_TITLE, lifespan=lifespan)

    # Register routes
    from app.api import api_router
    from app.routes.pages import router as pages_router

    app.include_router(api_router)
    app.include_router(pages_router)

    @app.exception_handler(InvalidRequest)
    async def invalid_request_handler(request: Request, exc: InvalidRequest):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    @app.exception_handler(QuotaExceeded)
    async def quota_exceeded_handler(request: Request, exc: QuotaExceeded):
        return JSONResponse(
            {"error": "Daily request limit reached", "message": exc.message},
            status_code=429,
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse({"error": str(exc) or "Not found"}, status_code=404)

    templates.env.globals["app_title"] = settings.APP_TITLE

    return app


app = create_app()
