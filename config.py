import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./messledger.db")
    DB_POOL_SIZE = int(data.get("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW = int(data.get("DB_MAX_OVERFLOW", 5))
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Read cache: "memory", "redis" or "none"
    CACHE_BACKEND = data.get("CACHE_BACKEND", "memory")
    CACHE_KEY_PREFIX = data.get("CACHE_KEY_PREFIX", "messledger")
    CACHE_TTL_SECONDS = int(data.get("CACHE_TTL_SECONDS", 30))
    PERIOD_LIST_CACHE_TTL_SECONDS = int(data.get("PERIOD_LIST_CACHE_TTL_SECONDS", 60))

    # Ledger event dispatch
    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)

    # Monthly period reconciliation
    MONTHLY_PERIOD_ENABLED = bool(data.get("MONTHLY_PERIOD_ENABLED", True))
    MONTHLY_PERIOD_INTERVAL_SECONDS = data.get("MONTHLY_PERIOD_INTERVAL_SECONDS", 3600)  # Hourly
    SYSTEM_ACTOR_ID = data.get("SYSTEM_ACTOR_ID", "system")
