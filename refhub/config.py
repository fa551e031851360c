# refhub/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ──────────────────────────────────────────────────────────────────────────────
# Database
# ──────────────────────────────────────────────────────────────────────────────
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "refhub")
# Standalone mongod cannot run multi-document transactions; replica sets can.
MONGODB_USE_TRANSACTIONS = _env_bool("MONGODB_USE_TRANSACTIONS", True)
# Runs of a transaction that keeps losing write conflicts before giving up
TRANSACTION_ATTEMPTS = int(os.getenv("TRANSACTION_ATTEMPTS", "3"))

# ──────────────────────────────────────────────────────────────────────────────
# Sessions
# ──────────────────────────────────────────────────────────────────────────────
# Support either JWT_SECRET_KEY or JWT_SECRET (fallback)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("JWT_SECRET") or ""
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))

# ──────────────────────────────────────────────────────────────────────────────
# Referral links & rewards
# ──────────────────────────────────────────────────────────────────────────────
PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", "http://localhost:3000").rstrip("/")
REFERRAL_CODE_BYTES = int(os.getenv("REFERRAL_CODE_BYTES", "6"))  # 12 hex chars
REWARD_CODE_LENGTH = int(os.getenv("REWARD_CODE_LENGTH", "8"))

# ──────────────────────────────────────────────────────────────────────────────
# HTTP / logging
# ──────────────────────────────────────────────────────────────────────────────
CORS_ALLOW_ORIGINS = [
    s.strip() for s in (os.getenv("CORS_ALLOW_ORIGINS", "*") or "*").split(",") if s.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
