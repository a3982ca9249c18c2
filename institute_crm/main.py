"""
Institute CRM Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from institute_crm.config import settings
from institute_crm.database import init_db
from institute_crm.core.exceptions import CRMException, StoreFailureError
from institute_crm.schemas.common import HealthResponse

# Import all API routers
from institute_crm.api import (
    auth, users, enquiries, follow_ups, call_logs, activities, job_orders, notifications, reference
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title=settings.APP_NAME,
    description="Enquiry pipeline, follow-ups and job orders for training institutes",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _failure(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers
    )


@app.exception_handler(CRMException)
async def crm_exception_handler(request: Request, exc: CRMException):
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Validation failed"
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"Validation failed for field '{field}': {errors[0].get('msg')}"
    return _failure(422, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    # Reads that hit the database outside a service try/except land here
    logger.error(f"{request.method} {request.url.path} store error: {exc}")
    return _failure(500, StoreFailureError().message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return _failure(500, StoreFailureError().message)


# Include all routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(enquiries.router)
app.include_router(follow_ups.router)
app.include_router(call_logs.router)
app.include_router(activities.router)
app.include_router(job_orders.router)
app.include_router(notifications.router)
app.include_router(reference.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse()
