"""
Settings for the reviews API.

Values come from the environment; a local .env file is loaded first so
development setups don't need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reviews.db")

# "development" exposes exception details in 500 responses
APP_ENV = os.getenv("APP_ENV", "production")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv(
    "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))
MAX_PAGE = int(os.getenv("MAX_PAGE", "1000000"))

CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
]


def is_development() -> bool:
    return APP_ENV.lower() == "development"
