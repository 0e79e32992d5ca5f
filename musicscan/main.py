import asyncio
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from musicscan.config import settings
from musicscan.core.errors import register_exception_handlers
from musicscan.modules.auth import routes as auth_routes
from musicscan.modules.roles import routes as roles_routes
from musicscan.modules.discogs import routes as discogs_routes
from musicscan.modules.indexnow import routes as indexnow_routes
from musicscan.modules.social import routes as social_routes
from musicscan.modules.singles import routes as singles_routes
from musicscan.modules.batch import routes as batch_routes
from musicscan.modules.ai import routes as ai_routes
from musicscan.modules.collection import routes as collection_routes
from musicscan.modules.pricing import routes as pricing_routes
from musicscan.modules.shop import routes as shop_routes
from musicscan.modules.email import routes as email_routes
from musicscan.modules.community import routes as community_routes
from musicscan.modules.audio import routes as audio_routes
from musicscan.modules.cronjobs import routes as cronjobs_routes
from musicscan.modules.stats import routes as stats_routes

API_PREFIX = "/api/v1"

ROUTERS = [
    auth_routes.router,
    roles_routes.router,
    collection_routes.router,
    pricing_routes.router,
    discogs_routes.router,
    audio_routes.router,
    ai_routes.router,
    batch_routes.router,
    singles_routes.router,
    indexnow_routes.router,
    social_routes.router,
    shop_routes.router,
    email_routes.router,
    community_routes.router,
    cronjobs_routes.router,
    stats_routes.router,
]

# Added to every HTTP response
SECURITY_HEADERS = [
    (b"X-Content-Type-Options", b"nosniff"),
    (b"X-Frame-Options", b"DENY"),
    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
]

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    """Plain ASGI middleware; BaseHTTPMiddleware would buffer streamed responses."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + SECURITY_HEADERS
            await send(message)

        await self.app(scope, receive, send_wrapper)


limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])


def create_app() -> FastAPI:
    application = FastAPI(title=settings.app_name, debug=settings.debug, redirect_slashes=False)
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(application)

    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for router in ROUTERS:
        application.include_router(router, prefix=API_PREFIX)
    return application


app = create_app()


@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.app_name} starting ({len(ROUTERS)} route modules)")
    if not settings.scheduler_enabled:
        return
    from musicscan.modules.cronjobs.scheduler import scheduler_loop
    app.state.scheduler_task = asyncio.create_task(scheduler_loop())
    logger.info("Cronjob scheduler started")


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "scheduler_task", None)
    if task is not None:
        task.cancel()
        logger.info("Cronjob scheduler stopped")


@app.get("/")
async def root():
    return {"service": settings.app_name, "api": API_PREFIX}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    return {"status": "ready"}
