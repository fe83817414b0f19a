import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

BACKEND_URL = os.getenv("BACKEND_URL")
if not BACKEND_URL:
    raise ValueError("BACKEND_URL must be set in the environment")

BACKEND_ANON_KEY = os.getenv("BACKEND_ANON_KEY")
if not BACKEND_ANON_KEY:
    raise ValueError("BACKEND_ANON_KEY must be set in the environment")

# Only needed by setup scripts (exec_sql, seeding). Never exposed to API callers.
BACKEND_SERVICE_KEY = os.getenv("BACKEND_SERVICE_KEY")

BACKEND_TIMEOUT_SECONDS = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

MAPS_API_KEY = os.getenv("MAPS_API_KEY")
OAUTH_REDIRECT_URL = os.getenv("OAUTH_REDIRECT_URL", "http://localhost:8080/auth/callback")

DEFAULT_MAX_CONCURRENT_JOBS = int(os.getenv("DEFAULT_MAX_CONCURRENT_JOBS", "3"))
