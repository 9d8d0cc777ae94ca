import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ALLOWED_ORIGINS, LOG_LEVEL
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.history.router import router as history_router
from .domain.medications.router import router as medications_router
from .domain.treatments.router import router as treatments_router
from .exceptions import DosewiseError

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        raise

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Dosewise API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(DosewiseError)
async def dosewise_exception_handler(request: Request, exc: DosewiseError):
    """Map domain errors to their HTTP status with a {"detail": ...} body"""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(medications_router)
app.include_router(treatments_router)
app.include_router(appointments_router)
app.include_router(history_router)


@app.get("/health")
def health():
    return {"status": "healthy"}
