from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.cors import CORSMiddleware

from vault.apps.documents.routers import documents_router, files_router
from vault.apps.documents.services import FileStorage
from vault.core.config import app_logger, settings
from vault.core.db import dispose_db, init_db
from vault.core.dependencies import get_async_session
from vault.core.exceptions.handlers import (
    app_exception_handler,
    authentication_exception_handler,
    database_exception_handler,
    exception_schema,
    rate_limit_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from vault.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    RateLimitExceededException,
    TooManyAttemptsException,
)
from vault.core.routers import auth_router, step_up_router
from vault.core.services import (
    BrevoService,
    DeliveryGateway,
    RedisService,
    Renderer,
    TwilioService,
)
from vault.core.utils import generate_openapi_json, write_to_file_async
from vault.infrastructure.scheduler import initialize_scheduler, scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("Starting application...")

    # Redis only backs the shared rate-limit counters
    if settings.RATE_LIMIT_BACKEND == "redis":
        app_logger.info("Initializing Redis service...")
        await RedisService.init(settings.REDIS_URL)
        app_logger.info("Redis service initialized successfully.")

    app_logger.info("Initializing database...")
    await init_db()
    app_logger.info("Database initialized successfully.")

    app_logger.info("Initializing file storage...")
    await FileStorage.init(settings.UPLOAD_DIR, settings.MAX_UPLOAD_BYTES)
    app_logger.info("File storage initialized successfully.")

    app_logger.info("Initializing template renderer...")
    Renderer.initialize(settings.TEMPLATE_DIR)
    app_logger.info("Template renderer initialized successfully.")

    app_logger.info("Initializing delivery channels...")
    await BrevoService.init(
        api_key=settings.BREVO_API_KEY,
        sender_email=settings.BREVO_SENDER_EMAIL,
        sender_name=settings.BREVO_SENDER_NAME,
        timeout=settings.DELIVERY_TIMEOUT_SECONDS,
    )
    TwilioService.init(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_PHONE_NUMBER,
        timeout=settings.DELIVERY_TIMEOUT_SECONDS,
    )
    DeliveryGateway.set_timeout(settings.DELIVERY_TIMEOUT_SECONDS)
    app_logger.info(
        f"Delivery channels initialized (mode: {_delivery_mode()})."
    )

    if settings.ENABLE_SCHEDULER:
        app_logger.info("Starting scheduler...")
        scheduler.start()
        app_logger.info("Scheduler started successfully.")
        initialize_scheduler()
    else:
        app_logger.info("Scheduler disabled via ENABLE_SCHEDULER setting.")

    app_logger.info("Generating OpenAPI schema...")
    openapi_schema = generate_openapi_json(app)
    await write_to_file_async("openapi.json", openapi_schema)

    yield

    app_logger.info("Shutting down application...")

    if settings.ENABLE_SCHEDULER and scheduler.running:
        app_logger.info("Stopping scheduler...")
        scheduler.shutdown()
        app_logger.info("Scheduler stopped successfully.")

    app_logger.info("Closing Brevo service...")
    await BrevoService.aclose()

    if settings.RATE_LIMIT_BACKEND == "redis":
        app_logger.info("Closing Redis service...")
        await RedisService.aclose()
        app_logger.info("Redis service closed successfully.")

    await dispose_db()


def _delivery_mode() -> str:
    email = BrevoService.is_configured()
    sms = TwilioService.is_configured()
    if email and sms:
        return "dual"
    if email:
        return "email-only"
    if sms:
        return "sms-only"
    return "none"


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
    root_path_in_servers=False,
    servers=[
        {
            "url": f"{settings.API_DOMAIN}",
        },
    ],
)

# Register exception handlers (order matters - more specific first)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AuthenticationException, authentication_exception_handler)
app.add_exception_handler(TooManyAttemptsException, rate_limit_exception_handler)
app.add_exception_handler(RateLimitExceededException, rate_limit_exception_handler)
app.add_exception_handler(DatabaseException, database_exception_handler)
# Generic fallbacks
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(step_up_router, prefix="/auth", tags=["Step-up Verification"])
app.include_router(documents_router, tags=["Documents"])
app.include_router(files_router, tags=["Files"])


@app.get("/", include_in_schema=False)
async def root(request: Request):
    base_url = str(request.base_url).rstrip("/")
    return {
        "message": f"Welcome to {settings.APP_NAME} API",
        "documentations": {
            "swagger": f"{base_url}/docs",
            "redoc": f"{base_url}/redoc",
        },
        "version": settings.APP_VERSION,
    }


@app.head("/health", include_in_schema=False)
@app.get("/health")
async def health_check(session: Annotated[AsyncSession, Depends(get_async_session)]):
    """
    Health check endpoint to verify if the API is running.

    Checks:
        - Database connectivity
        - Redis connectivity (only with the redis rate-limit backend)
    """
    health_status = {
        "status": "ok",
        "message": f"{settings.APP_NAME} API is running.",
        "checks": {
            "database": "ok",
        },
    }

    try:
        result = await session.execute(text("SELECT 1"))
        if result.scalar() != 1:
            health_status["checks"]["database"] = "unhealthy"
            health_status["status"] = "degraded"
    except Exception as e:
        app_logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "degraded"

    if settings.RATE_LIMIT_BACKEND == "redis":
        health_status["checks"]["redis"] = "ok"
        if not await RedisService.ping():
            health_status["checks"]["redis"] = "unhealthy"
            health_status["status"] = "degraded"

    if health_status["status"] != "ok":
        raise AppException(
            "One or more health checks failed.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=health_status,
        )

    return health_status


@app.get("/status", tags=["Status"])
async def delivery_status():
    """
    Report which step-up delivery channels are configured.

    `mode` is `dual`, `email-only`, `sms-only` or `none`. With `none` every
    step-up request fails with 503.
    """
    return {
        "status": "ok",
        "channels": {
            "email": BrevoService.is_configured(),
            "sms": TwilioService.is_configured(),
        },
        "mode": _delivery_mode(),
    }
