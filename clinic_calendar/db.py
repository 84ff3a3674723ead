# clinic_calendar/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from clinic_calendar.config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

def init_db(bind=None) -> None:
    # importing the models registers the tables on SQLModel.metadata
    from clinic_calendar import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ready")

# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
