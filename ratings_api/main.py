import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from ratings_api.core.config import get_settings
from ratings_api.core.deps import require_allowed_ip
from ratings_api.core.errors import RatingsError
from ratings_api.core.ip_blacklist import IpBlacklist, refresh_loop
from ratings_api.db.session import SessionLocal
from ratings_api.routers.auth import router as auth_router
from ratings_api.routers.groups import router as groups_router
from ratings_api.routers.health import router as health_router
from ratings_api.routers.push import router as push_router
from ratings_api.routers.ratings import router as ratings_router
from ratings_api.routers.restaurants import router as restaurants_router
from ratings_api.routers.users import router as users_router
from ratings_api.services.dispatcher import NotificationDispatcher
from ratings_api.services.push import LoggingTransport, WebPushTransport

settings = get_settings()

LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt=LOG_DATEFMT,
)
# asctime is rendered in UTC to match the Z suffix
logging.Formatter.converter = time.gmtime
logger = logging.getLogger(__name__)


def build_transport():
    if settings.push_enabled:
        return WebPushTransport(
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            claims_subject=settings.VAPID_CLAIMS_SUBJECT,
            ttl=settings.PUSH_TTL_SECONDS,
        )
    logger.warning("VAPID keys not configured; completion notifications will only be logged")
    return LoggingTransport()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    app.state.ip_blacklist = IpBlacklist()
    app.state.dispatcher = NotificationDispatcher(
        SessionLocal, build_transport(), max_workers=settings.NOTIFICATION_WORKERS
    )
    refresh_task = asyncio.create_task(
        refresh_loop(app.state.ip_blacklist, SessionLocal, settings.IP_BLACKLIST_REFRESH_SECONDS)
    )

    yield

    refresh_task.cancel()
    try:
        await refresh_task
    except asyncio.CancelledError:
        pass
    app.state.dispatcher.shutdown(wait=False)
    logger.info("Application shutdown")


limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])

app = FastAPI(
    title=settings.APP_NAME,
    description="Group restaurant ratings with quarterly rating rounds and completion notifications.",
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RatingsError)
async def ratings_error_handler(request: Request, exc: RatingsError):
    """Map domain errors to their status code with a machine-readable code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_dependencies = [Depends(require_allowed_ip)]

app.include_router(health_router)
app.include_router(auth_router, prefix="/api", dependencies=api_dependencies)
app.include_router(users_router, prefix="/api", dependencies=api_dependencies)
app.include_router(groups_router, prefix="/api", dependencies=api_dependencies)
app.include_router(restaurants_router, prefix="/api", dependencies=api_dependencies)
app.include_router(ratings_router, prefix="/api", dependencies=api_dependencies)
app.include_router(push_router, prefix="/api", dependencies=api_dependencies)


@app.get("/")
def read_root():
    return {
        "message": "Welcome to the Group Ratings API",
        "docs": "/docs",
        "health": "/health"
    }
