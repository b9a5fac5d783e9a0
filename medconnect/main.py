"""
MedConnect Reports - web frontend

Serves report previews and downloads built from the MedConnect REST backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import configure_logging
from .errors import ApplicationError, NetworkError, ValidationFailed
from .routers import doctor_reports, reports

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("MedConnect Reports starting up")
    yield
    logger.info("MedConnect Reports shutting down")


app = FastAPI(
    title="MedConnect Reports",
    description="Report previews and PDF exports for MedConnect Rwanda",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NetworkError)
async def network_error_handler(request: Request, exc: NetworkError):
    return JSONResponse(status_code=502, content={"message": str(exc)})


@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError):
    status = exc.status_code if 400 <= exc.status_code < 600 else 502
    return JSONResponse(status_code=status, content={"message": exc.message})


@app.exception_handler(ValidationFailed)
async def validation_error_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"message": str(exc)})


# Routers
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(doctor_reports.router, prefix="/api/doctor-reports", tags=["Doctor Reports"])


@app.get("/")
async def root():
    return {"status": "ok", "service": "MedConnect Reports", "version": __version__}


@app.get("/health")
async def health():
    return {"status": "healthy"}
