import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - registers every mapper with Base
from .config import FRONTEND_URL
from .database import Base, engine
from .domain.disputes.router import router as disputes_router
from .domain.freelancers.router import decisions_router as freelancer_decisions_router
from .domain.freelancers.router import router as freelancers_router
from .domain.meetings.router import router as meetings_router
from .domain.notifications.router import router as notifications_router
from .domain.payments.router import escrow_router
from .domain.payments.router import router as payments_router
from .domain.projects.router import router as projects_router
from .domain.verification.router import router as verification_router
from .routes.cal_webhooks import router as cal_webhooks_router
from .routes.dashboard import router as dashboard_router
from .routes.files import router as files_router
from .routes.meeting_reminders import router as meeting_reminders_router
from .routes.stripe_webhooks import router as stripe_webhooks_router
from .routes.users import router as users_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("ENABLE_SECURITY_HEADERS", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Another worker may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    from .rate_limiter import get_redis_client

    if get_redis_client() is None:
        logger.warning("Redis unavailable - rate limiting and cache are per-process")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="MeetBoard API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    elapsed_ms = (time.time() - start) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(users_router)
app.include_router(freelancers_router)
app.include_router(freelancer_decisions_router)
app.include_router(meetings_router)
app.include_router(meeting_reminders_router)
app.include_router(projects_router)
app.include_router(payments_router)
app.include_router(escrow_router)
app.include_router(disputes_router)
app.include_router(notifications_router)
app.include_router(verification_router)
app.include_router(files_router)
app.include_router(dashboard_router)
app.include_router(cal_webhooks_router)
app.include_router(stripe_webhooks_router)


@app.get("/")
def root():
    return {"message": "MeetBoard API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
