from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from pathlib import Path

from tracker.database import engine, Base
from tracker import models  # noqa: F401  Import all models to register them with Base
from tracker.auto_migrate import auto_migrate
from tracker.routes import router, quarter_router
from tracker.exceptions import (
    DisciplineNotFoundException, DisciplineCheckNotFoundException,
    InvalidStatusTransitionException, InvalidQuarterException, InvalidScheduleException
)
from tracker.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS
)

LOG_DIR = os.getenv("TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("TRACKER_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("tracker")

# Create database tables
Base.metadata.create_all(bind=engine)

# Run automatic schema migrations (add missing columns)
try:
    auto_migrate()
except Exception as e:
    logger.error(f"Auto-migration failed: {e}")
    # Don't crash the app - continue with existing schema

app = FastAPI(
    title="Discipline Tracker API",
    description="Recurring disciplines with check-ins, streaks and quarterly consistency",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(quarter_router)


@app.exception_handler(DisciplineNotFoundException)
@app.exception_handler(DisciplineCheckNotFoundException)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvalidStatusTransitionException)
@app.exception_handler(InvalidQuarterException)
@app.exception_handler(InvalidScheduleException)
async def bad_request_handler(request: Request, exc: Exception):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    logger.info(f"Discipline Tracker API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Discipline Tracker API")


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Discipline Tracker API", "status": "active"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tracker.main:app", host="0.0.0.0", port=8000, reload=False)
