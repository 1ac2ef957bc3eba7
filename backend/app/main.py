from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional

from app.core.config import settings
from app.core.database import init_db, close_db, get_session_local
from app.core.exceptions import BroDeskError, error_response
from app.core.logging_config import logger
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.api.v1.router import api_router
from app.modules.auth.session_context import IdentitySession, SessionEvent, session_events
from app.services.category_service import category_service
from slowapi.errors import RateLimitExceeded


def validate_critical_config():
    """Validate critical configuration at startup - fail fast in production"""
    problems = []

    if not settings.DATABASE_URL:
        problems.append("DATABASE_URL is not set")

    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "CHANGE_ME":
        problems.append("JWT_SECRET_KEY is not set or using default value")

    if problems and settings.ENVIRONMENT == "production":
        for problem in problems:
            logger.critical(f"[Startup] CRITICAL: {problem}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(problems)}")

    for problem in problems:
        logger.warning(f"[Startup] WARNING: {problem}")

    logger.info("[Startup] ✓ Configuration validated")


def log_session_change(event: SessionEvent, session: Optional[IdentitySession]) -> None:
    """Session listener: every identity session change ends up in the log"""
    logger.info(
        f"[Session] {event.value}" + (f" - {session.email}" if session else ""),
        extra={
            "event_type": "session_change",
            "session_event": event.value,
            "session_id": session.session_id if session else None,
        }
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    validate_critical_config()

    await init_db()
    logger.info("[Startup] Database tables ready")

    async with get_session_local()() as db:
        await category_service.ensure_defaults(db, settings.DEFAULT_CATEGORIES)

    unsubscribe = session_events.subscribe(log_session_change)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    unsubscribe()
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Role-based complaint ticketing for students, staff and administrators",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(BroDeskError)
async def brodesk_exception_handler(request: Request, exc: BroDeskError):
    if exc.http_status >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"event_type": "api_error", "error_code": exc.code})
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra={"event_type": "api_error", "error_code": exc.code})
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if settings.DEBUG else "An error occurred",
                "details": {},
            },
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
