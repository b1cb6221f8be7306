"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import auth, bookings, courts, users
from app.core.config import settings
from app.core.errors import BookingError
from app.services.booking_service import BookingService
from app.services.user_service import UserService
from app.stores import build_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Club Court Booking")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # A store placed on app.state beforehand (tests, embedding) wins over config
    store = getattr(app.state, "store", None)
    if store is None:
        store = build_store()
        if settings.STORE_BACKEND == "sql":
            from app.core.database import init_db

            await init_db()
    app.state.store = store
    app.state.booking_service = BookingService(store)
    app.state.user_service = UserService(store)

    if settings.SEED_DEMO_USERS:
        await app.state.user_service.seed_demo_users()

    yield

    # Shutdown
    logger.info("Shutting down Club Court Booking")
    await store.close()


# Create FastAPI app
app = FastAPI(
    title="Club Court Booking",
    description="Court reservations for club members, trainers and administrators",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Render service errors with their status code and details."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(courts.router)
app.include_router(bookings.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "store": type(app.state.store).__name__,
    }
