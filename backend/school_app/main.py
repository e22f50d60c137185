from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from school_app import schemas
from school_app.core.config import CORS_ORIGINS
from school_app.db import Base, engine
from school_app.logger import get_logger
from school_app.results.errors import FormatError, LoadError, SaveError, SaveInProgressError
from school_app.routers import (
    academics,
    admission,
    announcements,
    assignments,
    auth,
    dashboard,
    events,
    public,
    results,
    students,
    teachers,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)
    yield


# Initialize FastAPI app
app = FastAPI(title="School Portal", lifespan=lifespan)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception Handlers ---

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": jsonable_encoder(exc.errors())
        }
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP error {exc.status_code} for {request.url}: {exc.detail}")

    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        error_content = schemas.ErrorResponse(
            status_code=exc.status_code,
            detail=str(exc.detail)
        )
        content = error_content.model_dump()

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(LoadError)
async def load_error_handler(request: Request, exc: LoadError):
    error_content = schemas.ErrorResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=exc.message,
        error_code="LOAD_ERROR",
    )
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=error_content.model_dump())

@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError):
    logger.info(f"Rejected CSV upload for {request.url}: {exc.message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})

@app.exception_handler(SaveInProgressError)
async def save_in_progress_handler(request: Request, exc: SaveInProgressError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": exc.message})

@app.exception_handler(SaveError)
async def save_error_handler(request: Request, exc: SaveError):
    content = {
        "error": exc.message,
        "failures": [failure.model_dump() for failure in exc.failures],
        "sheet": exc.sheet.model_dump() if exc.sheet else None,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled server error for {request.url}: {exc}", exc_info=True)

    error_content = schemas.ErrorResponse(
        status_code=500,
        detail="An internal server error occurred.",
        error_code="INTERNAL_SERVER_ERROR"
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content.model_dump()
    )


# --- Router Inclusion ---
app.include_router(public.router)
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(students.router)
app.include_router(teachers.router)
app.include_router(events.router)
app.include_router(announcements.router)
app.include_router(assignments.router)
app.include_router(academics.router)
app.include_router(results.router)
app.include_router(admission.router)
