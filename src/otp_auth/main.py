"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from otp_auth.api.auth import router as auth_router
from otp_auth.api.user import router as user_router
from otp_auth.config import Settings, settings
from otp_auth.database.engine import async_session_factory, engine, init_db
from otp_auth.errors import ServiceError, Unauthorized
from otp_auth.middleware.rate_limit import RateLimitMiddleware
from otp_auth.services.counter_sweep import CounterSweeper

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    app_settings: Settings = app.state.settings
    logger.info("Starting %s …", app_settings.app_name)
    await init_db(engine)
    logger.info("Database initialised")

    sweeper = CounterSweeper(
        async_session_factory,
        interval=timedelta(hours=app_settings.counter_sweep_interval_hours),
    )
    if app_settings.counter_sweep_enabled:
        sweeper.start()
    yield
    await sweeper.stop()
    logger.info("Shutting down %s …", app_settings.app_name)


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(
            status_code=exc.status_code, content={"message": exc.message}, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part != "body"),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Something went wrong!"},
        )


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(
        title=app_settings.app_name,
        description="Email/OTP signup, password login with lockout, and JWT sessions",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # Added last so it wraps the limiter and 429s carry CORS headers
    if app_settings.rate_limit_enabled:
        prefix = app_settings.api_prefix
        app.add_middleware(
            RateLimitMiddleware,
            prefixes=(f"{prefix}/auth", f"{prefix}/user"),
            max_requests=app_settings.rate_limit_max_requests,
            window_seconds=app_settings.rate_limit_window_seconds,
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_exception_handlers(app)
    app.include_router(auth_router, prefix=app_settings.api_prefix)
    app.include_router(user_router, prefix=app_settings.api_prefix)

    @app.get(f"{app_settings.api_prefix}/health")
    async def health_check():
        """Simple liveness probe."""
        return {"status": "healthy", "app": app_settings.app_name}

    return app


app = create_app()
