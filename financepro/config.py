import os

from financepro.currency import normalize_currency

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./financepro.db")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "financepro-dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

GOOGLE_USERINFO_URL = os.getenv(
    "GOOGLE_USERINFO_URL", "https://www.googleapis.com/oauth2/v3/userinfo"
)
GOOGLE_TIMEOUT_SECONDS = int(os.getenv("GOOGLE_TIMEOUT_SECONDS", "8"))


def get_system_default_currency() -> str:
    raw = os.getenv("DEFAULT_CURRENCY", "CLP")
    try:
        return normalize_currency(raw)
    except ValueError:
        return "CLP"


SYSTEM_DEFAULT_CURRENCY = get_system_default_currency()
