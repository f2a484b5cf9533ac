import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, API_BASE_URL, BRAND_NAME
from .database import Base, engine
from .domain.availability import router as availability_router
from .domain.cart import router as cart_router
from .domain.checkout import router as checkout_router
from .domain.discounts import router as discounts_router
from .domain.invoices import router as invoices_router
from .routes import admin_router, auth_router, catalog_router
from .services.backend_client import BackendError, BackendUnavailableError, SessionExpiredError

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
        # Another worker may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    from .rate_limiter import get_optional_redis_client

    if get_optional_redis_client():
        logger.info("Redis connection established")
    else:
        logger.warning("Redis unavailable - rate limiting in memory only, catalog cache disabled")

    logger.info(f"Proxying backend at {API_BASE_URL}")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title=f"{BRAND_NAME} API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BackendError)
async def backend_exception_handler(request: Request, exc: BackendError):
    """Upstream errors keep their status code and message"""
    if isinstance(exc, BackendUnavailableError):
        status_code = 503
    elif isinstance(exc, SessionExpiredError):
        status_code = 401
    else:
        status_code = exc.status_code if 400 <= exc.status_code < 600 else 502
    logger.warning(f"{request.method} {request.url.path} - backend error {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    # ctx may hold the raised ValueError itself, which is not JSON serializable
    errors = [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": errors})


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
    allow_credentials=True,  # Admin session travels in cookies
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(availability_router)
app.include_router(checkout_router)
app.include_router(cart_router)
app.include_router(discounts_router)
app.include_router(invoices_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {"message": f"{BRAND_NAME} API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
