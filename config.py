"""
Runtime configuration

Values come from the process environment; a local .env file is picked up
for development.
"""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated, "*" allows everything
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# "log" writes report-ready notices to the log, "outbox" records them in the database
NOTIFIER = os.getenv("NOTIFIER", "outbox").lower()
