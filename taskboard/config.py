"""Environment-driven settings for the task board service."""

import os
from pathlib import Path

DB_PATH = Path(os.getenv("TASKBOARD_DB_PATH", str(Path(__file__).parent / "data.db")))
DATABASE_URL = f"sqlite:///{DB_PATH}"

# Every week key and "today" is computed in this zone. Changing FIRST_DAY
# changes the persisted week keys and needs a data migration.
TIMEZONE = os.getenv("TASKBOARD_TIMEZONE", "America/New_York")
FIRST_DAY = os.getenv("TASKBOARD_FIRST_DAY", "sunday").lower()

SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL", "")
SLACK_TIMEOUT_SECONDS = float(os.getenv("SLACK_TIMEOUT_SECONDS", "10"))

ALLOWED_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3001,http://localhost:5173,http://localhost:8000",
).split(",")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
