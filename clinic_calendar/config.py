# clinic_calendar/config.py

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite database (file-based) unless overridden
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Records dated before today - RETENTION_DAYS are swept
RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", "60"))

# Upper bound for the "next available slot" day-by-day search
SEARCH_HORIZON_DAYS = int(os.getenv("SEARCH_HORIZON_DAYS", "60"))

# Run the retention sweep once when the app starts
SWEEP_ON_STARTUP = os.getenv("SWEEP_ON_STARTUP", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
