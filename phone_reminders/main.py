"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from phone_reminders.api.reminders import router as reminders_router
from phone_reminders.config import get_settings
from phone_reminders.db.session import engine

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run the reminder scheduler for the app's lifetime."""
    # Import models to register them with SQLModel
    from phone_reminders.models import Reminder  # noqa: F401
    from phone_reminders.workers import ReminderScheduler

    settings.validate()
    SQLModel.metadata.create_all(engine)

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        # Raises NotifierConfigurationError without Twilio credentials
        scheduler = ReminderScheduler()
        scheduler.start()
    else:
        logger.info("Reminder scheduler disabled by configuration")
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()
        scheduler.notifier.close()

app = FastAPI(
    title="Phone Reminders API",
    description="Schedule SMS and voice-call reminders",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = [origin for origin in {settings.FRONTEND_URL, "http://localhost:3000"} if origin]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Report storage failures as server errors."""
    logger.error(
        "Storage error while handling request",
        extra={"path": request.url.path, "method": request.method, "error": str(exc)},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage error, please retry"},
    )


# Register routers
app.include_router(reminders_router)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
