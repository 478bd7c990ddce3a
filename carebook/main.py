# carebook/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from carebook.core.config import settings
from carebook.core.logging import get_logger, setup_logging
from carebook.core.middleware import RequestContextMiddleware
from carebook.db.sql import engine, init_db
from carebook.routers import appointments, health, schedules

setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = get_logger(__name__)


# Define lifespan event
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    """
    logger.info("startup", env=settings.APP_ENV)
    if settings.DB_CREATE_TABLES:
        await init_db()
    yield
    await engine.dispose()
    logger.info("shutdown")

app = FastAPI(
    title="CareBook Scheduling API",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Routing
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
app.include_router(schedules.router, prefix=settings.API_PREFIX)
app.include_router(appointments.router, prefix=settings.API_PREFIX)

@app.get("/")
def root():
    return {"message": "CareBook scheduling API running"}
