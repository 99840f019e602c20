from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Any, Optional
from datetime import datetime, timezone
import logging

from pydantic import BaseModel

from moto_sos.api import contacts, emergency, location, sessions
from moto_sos.api.deps import ControllerDep
from moto_sos.config import Settings, settings
from moto_sos.core import (
    ActiveTab,
    ContactStore,
    EmergencyController,
    MockFacilityLocator,
    NotificationDispatcher,
    SessionStore,
)
from moto_sos.database import (
    KeyValueStore,
    SQLKeyValueStore,
    create_db_and_tables,
    make_engine,
)
from moto_sos.exceptions import StorageError
from moto_sos.utils import (
    LogDialer,
    build_geocoder,
    build_location_provider,
    build_notification_service,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def build_controller(
    kv_store: Optional[KeyValueStore] = None,
    config: Settings = settings
) -> EmergencyController:
    """Wire the stores and providers into a controller"""
    if kv_store is None:
        engine = make_engine(config.DATABASE_URL, config.DATABASE_ECHO)
        create_db_and_tables(engine)
        kv_store = SQLKeyValueStore(engine)

    return EmergencyController(
        session_store=SessionStore(kv_store, history_limit=config.SESSION_HISTORY_LIMIT),
        contact_store=ContactStore(kv_store),
        location_provider=build_location_provider(config),
        facility_locator=MockFacilityLocator(),
        dispatcher=NotificationDispatcher(
            build_notification_service(config),
            maps_url_template=config.MAPS_URL_TEMPLATE
        ),
        geocoder=build_geocoder(config),
        dialer=LogDialer(),
        countdown_ticks=config.COUNTDOWN_TICKS,
        tick_seconds=config.COUNTDOWN_TICK_SECONDS
    )

# Lifespan manager for startup/shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Application starting up")
    if getattr(app.state, "controller", None) is None:
        app.state.controller = build_controller()
    await app.state.controller.start()
    yield
    # Shutdown
    app.state.controller.release()
    logger.info("Application shutting down")

app = FastAPI(
    title="Moto SOS API",
    description="Emergency alerts, contacts and nearby medical help for motorcyclists",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(contacts.router, prefix="/api/contacts", tags=["Contacts"])
app.include_router(location.router, prefix="/api/location", tags=["Location"])
app.include_router(emergency.router, prefix="/api/emergency", tags=["Emergency"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["History"])

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})

class TabRequest(BaseModel):
    tab: ActiveTab

@app.put("/api/tab")
async def set_active_tab(controller: ControllerDep, body: TabRequest) -> dict[str, Any]:
    controller.set_active_tab(body.tab)
    return {"active_tab": controller.active_tab.value}

@app.get("/")
async def root():
    return {
        "message": "Moto SOS API",
        "status": "active",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# Health check endpoint
@app.get("/health")
async def health_check(controller: ControllerDep) -> dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "gps_active": controller.location is not None,
        "emergency_active": controller.active_session is not None
    }
