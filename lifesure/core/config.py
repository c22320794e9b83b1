import json
import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_database_url() -> str:
    explicit_url = os.getenv("DATABASE_URL")
    if explicit_url:
        return explicit_url

    user = os.getenv("DB_USER", "lifesure")
    password = os.getenv("DB_PASS", "lifesure")
    host = os.getenv("DB_HOST", "localhost:5432")
    name = os.getenv("DB_NAME", "LifeSureDB")
    return f"postgresql+psycopg2://{user}:{password}@{host}/{name}"


def _read_project_id(service_account_path: str) -> str:
    if not service_account_path:
        return ""
    try:
        with open(service_account_path, encoding="utf-8") as handle:
            return json.load(handle).get("project_id", "")
    except (OSError, ValueError):
        return ""


APP_ENV = os.getenv("APP_ENV", "development")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = _build_database_url()

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), default=["*"])

PAYMENT_GATEWAY_KEY = os.getenv("PAYMENT_GATEWAY_KEY", "")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")

FIREBASE_SERVICE_ACCOUNT_PATH = os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH", "firebase-adminsdk-key.json")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID") or _read_project_id(FIREBASE_SERVICE_ACCOUNT_PATH)
FIREBASE_JWKS_URL = os.getenv(
    "FIREBASE_JWKS_URL",
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
)

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
TOP_POLICIES_LIMIT = 6


def validate_runtime_config() -> None:
    if APP_ENV.lower() != "production":
        return
    if not PAYMENT_GATEWAY_KEY:
        raise RuntimeError("PAYMENT_GATEWAY_KEY must be set in production.")
    if not FIREBASE_PROJECT_ID:
        raise RuntimeError("FIREBASE_PROJECT_ID or FIREBASE_SERVICE_ACCOUNT_PATH must be set in production.")
