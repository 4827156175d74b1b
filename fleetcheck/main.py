"""Fleet Pre-Shift Check service."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleetcheck.core.config import settings
from fleetcheck.core.database import create_db_and_tables
from fleetcheck.core.scheduler import shutdown_scheduler, start_scheduler
from fleetcheck.core.services import shutdown_services
from fleetcheck.routes import checks, questions, sessions, sync, vehicles

# Configure logging
settings.log_dir.mkdir(parents=True, exist_ok=True)
log_file = settings.log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Fleet Pre-Shift Check service")
    create_db_and_tables()
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    shutdown_services()
    logger.info("Fleet Pre-Shift Check service shut down")


app = FastAPI(
    title=settings.app_name,
    description="Pre-shift vehicle inspections with rotating questions that gate operating sessions",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for the mobile and admin clients
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

# Include routers
app.include_router(vehicles.router)
app.include_router(questions.router)
app.include_router(checks.router)
app.include_router(sessions.router)
app.include_router(sync.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
