"""CampusConnect Web Application."""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.oauth import build_oauth_providers
from campusconnect.core.clients import ClientRegistry
from campusconnect.core.config import Settings, settings
from campusconnect.core.database import create_db_and_tables, engine
from campusconnect.core.scheduler import shutdown_scheduler, start_scheduler
from campusconnect.dependencies import wants_json
from campusconnect.routes import admin, auth, events, notifications, pages
from campusconnect.store import DatabaseEventStore, EventStore, InMemoryEventStore
from campusconnect.store.mock_data import seed_demo_data
from campusconnect.templating import render

# Configure logging
log_dir = Path(settings.log_dir)
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def build_event_store(config: Settings) -> EventStore:
    """The event store selected by ``event_source``."""
    if config.event_source == "memory":
        return InMemoryEventStore()
    if config.event_source != "database":
        raise ValueError(f"Unknown event source: {config.event_source}")
    return DatabaseEventStore(engine)


def build_registry(config: Settings, event_store: EventStore) -> ClientRegistry:
    backend = AccountBackend(engine, session_ttl=timedelta(minutes=config.session_ttl_minutes))
    return ClientRegistry(
        backend,
        event_store,
        oauth_providers=build_oauth_providers(config),
        site_url=config.site_url,
        reminder_window_days=config.reminder_window_days,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting CampusConnect application")
    create_db_and_tables()
    event_store = build_event_store(settings)
    if settings.seed_demo_data:
        seeded = seed_demo_data(event_store)
        if seeded:
            logger.info(f"Seeded {seeded} demo events")
    registry = build_registry(settings, event_store)
    app.state.event_store = event_store
    app.state.registry = registry
    start_scheduler(registry)
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("CampusConnect application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Discover campus events, register for them and follow announcements",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Signed cookie holding the browser id and the access token
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, same_site="lax")

# Mount static files
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Include routers
app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(events.router)
app.include_router(notifications.router)
app.include_router(admin.router)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Render the not-found page for browsers; everything else keeps the JSON error."""
    if exc.status_code == 404 and not wants_json(request):
        return render(request, None, "not_found.html", status_code=404, path=request.url.path)
    return await http_exception_handler(request, exc)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
