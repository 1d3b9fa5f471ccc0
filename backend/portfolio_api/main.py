import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from portfolio_api.core.config import settings
from portfolio_api.core.context import AppContext, build_context
from portfolio_api.core.database import create_tables
from portfolio_api.core.errors import AppError
from portfolio_api.core.middleware import SecurityHeadersMiddleware
from portfolio_api.core.scheduler import start_scheduler, stop_scheduler
from portfolio_api.api.routes import profiles, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: Create tables, start the profile sweep scheduler
    Shutdown: Stop the scheduler
    """
    context: AppContext = app.state.context
    create_tables(context.engine)
    if not context.settings.image_host_configured():
        logger.warning("Image host credentials missing; avatar uploads will fail")

    scheduler = None
    if context.settings.PROFILE_SWEEP_ENABLED:
        scheduler = start_scheduler(context)
    logger.info("Portfolio API started")
    yield
    if scheduler is not None:
        stop_scheduler(scheduler)
    logger.info("Portfolio API stopped")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Missing or malformed body fields are client errors, not 422s
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the FastAPI application around an explicit context"""
    context = context or build_context(settings)

    app = FastAPI(
        title="Portfolio API",
        description="User accounts and public profiles for the portfolio site",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.context = context

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.add_middleware(SecurityHeadersMiddleware)
    # CORS middleware - only the configured frontends may call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(users.router)
    app.include_router(profiles.router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hello from the backend"

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app


def main() -> None:
    """Run the API with uvicorn on the configured host and port"""
    import uvicorn

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
