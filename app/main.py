import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.dependencies import get_notifier
from app.core.errors import LedgerError
from app.core.events import CampChanged, ChangeEvent, SelectionChanged
from app.database.store import get_store, seed_default_camps
from app.modules.auth import routes as auth_routes
from app.modules.camps import routes as camps_routes
from app.modules.selections import routes as selections_routes
from app.modules.assignments import routes as assignments_routes
from app.modules.changes import routes as changes_routes
from app.modules.changes.connections import manager as ws_manager

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(camps_routes.router, prefix="/api/v1")
app.include_router(selections_routes.router, prefix="/api/v1")
app.include_router(assignments_routes.router, prefix="/api/v1")
app.include_router(changes_routes.router, prefix="/api/v1")


def log_change(event: ChangeEvent):
    if isinstance(event, CampChanged):
        logger.debug(f"Camp {event.camp_id} {event.action.lower()}: beds={event.current.get('beds')}")
    elif isinstance(event, SelectionChanged):
        logger.debug(f"Selection for user {event.user_id} {event.action.lower()}: status={event.current.get('status')}")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    store = get_store()
    notifier = get_notifier()
    notifier.attach(store)
    notifier.subscribe(ChangeEvent, log_change)
    ws_manager.bind_loop(asyncio.get_running_loop())
    notifier.subscribe(ChangeEvent, ws_manager.handle_event)

    if settings.seed_default_camps:
        created = seed_default_camps(store)
        logger.info(f"Default camps seeded: {created} created")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    notifier = get_notifier()
    notifier.detach()
    notifier.clear()


@app.get("/")
async def root():
    return {"message": "Welcome to relief-camps-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: the camp store must answer a read."""
    try:
        get_store().list_camps()
    except LedgerError as e:
        return JSONResponse(status_code=503, content={"status": "unavailable", "detail": e.message})
    return {"status": "ready"}
