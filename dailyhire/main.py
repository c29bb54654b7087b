import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.accounts import router as accounts_router
from .domain.availability import router as availability_router
from .domain.bookings import router as bookings_router
from .domain.directory import router as directory_router
from .domain.directory.repository import DirectoryRepository
from .domain.messaging import router as messaging_router
from .domain.reviews import router as reviews_router
from .errors import DomainError, Transient, Unauthorized, ValidationFailed

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except OperationalError as e:
        # Ignore "already exists" errors from race conditions between workers
        if "already exists" in str(e):
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    db = SessionLocal()
    try:
        seeded = DirectoryRepository.seed_categories(db)
        if seeded:
            logger.info(f"🌱 Seeded {seeded} default categories")
    finally:
        db.close()

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="DailyHire API", version="1.0.0", lifespan=lifespan)


def _error_response(error: DomainError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if isinstance(exc, Unauthorized):
        logger.warning(f"🚫 {request.method} {request.url.path} denied: {exc.reason}")
    elif isinstance(exc, Transient):
        logger.error(f"❌ {request.method} {request.url.path} transient failure: {exc.message}")
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request schema errors use the same envelope as ValidationFailed"""
    fields = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from our validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(".".join(loc) or "request", message)

    logger.warning(f"Validation error for {request.url.path}: {fields}")
    return _error_response(ValidationFailed(fields))


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return _error_response(Transient("The service is temporarily unavailable. Please try again."))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(accounts_router)
app.include_router(directory_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(messaging_router)
app.include_router(reviews_router)


@app.get("/")
def root():
    return {"message": "DailyHire API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
