import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, BUSINESS_NAME
from .database import Base, engine
from .domain.availability import router as availability_router
from .domain.bookings import admin_router as admin_bookings_router
from .domain.bookings import router as bookings_router
from .domain.catalog import admin_router as admin_services_router
from .domain.catalog import router as services_router
from .domain.contacts import admin_router as admin_contacts_router
from .domain.contacts import router as contacts_router
from .domain.customers import admin_router as admin_customers_router
from .domain.customers import router as customers_router
from .domain.payments import router as payments_router
from .exceptions import BookingDomainError, StoreUnavailable
from .routes import auth_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title=f"{BUSINESS_NAME} Booking API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingDomainError)
async def booking_domain_exception_handler(request: Request, exc: BookingDomainError):
    """Translate domain errors raised by the service layer to their HTTP status"""
    if isinstance(exc, StoreUnavailable):
        logger.error(f"{request.method} {request.url.path} - store unavailable")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.error_code},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(f"Authentication failed for {request.url.path}: Missing Authorization header")
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold the raised ValueError, which is not JSON serializable
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)")
    return response


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(services_router)
app.include_router(admin_services_router)
app.include_router(customers_router)
app.include_router(admin_customers_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(admin_bookings_router)
app.include_router(payments_router)
app.include_router(contacts_router)
app.include_router(admin_contacts_router)


@app.get("/")
def root():
    return {"message": f"{BUSINESS_NAME} Booking API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/db")
def db_health_check():
    """Check store connectivity for monitoring"""
    try:
        start_time = time.time()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        response_time = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "database": {"connected": True, "dialect": engine.dialect.name, "response_time_ms": round(response_time, 2)},
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": {"connected": False, "error": "Database unavailable"}},
        )
