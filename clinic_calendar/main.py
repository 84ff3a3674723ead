# clinic_calendar/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import Session

from clinic_calendar.config import RETENTION_DAYS, SWEEP_ON_STARTUP, configure_logging
from clinic_calendar.db import engine, init_db
from clinic_calendar.repository import BookingRepository
from clinic_calendar.routers import (
    appointments_routes,
    availability_routes,
    dentists_routes,
    maintenance_routes,
    schedule_routes,
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with Session(engine) as session:
        repo = BookingRepository(session)
        repo.seed_dentists()
        if SWEEP_ON_STARTUP:
            repo.sweep_expired(RETENTION_DAYS)
    logger.info("Clinic calendar started")
    yield

def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Clinic Calendar", lifespan=lifespan)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(availability_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(schedule_routes.router)
    app.include_router(dentists_routes.router)
    app.include_router(maintenance_routes.router)
    return app

app = create_app()
