import os

from dotenv import load_dotenv

# Values from a local .env file never override real environment variables.
load_dotenv()

# ==========================================================
# 🗄️ DATABASE
# ==========================================================

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./school.db")

# Render Fix: SQLAlchemy 1.4+ requires 'postgresql://' instead of 'postgres://'
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# ==========================================================
# 🔐 AUTH
# ==========================================================

# ⚠️ Always set SECRET_KEY in production
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-school-portal-development-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "300"))

# ==========================================================
# 🌐 CORS
# ==========================================================

_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",")
    if origin.strip()
]

# ==========================================================
# ✉️ MAIL
# ==========================================================

MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", "")
MAIL_SERVER = os.getenv("MAIL_SERVER", "")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
ADMISSIONS_INBOX_EMAIL = os.getenv("ADMISSIONS_INBOX_EMAIL", "")


def mail_enabled() -> bool:
    """Admission emails are sent only when a server, sender and inbox are set."""
    return bool(MAIL_SERVER and MAIL_FROM and ADMISSIONS_INBOX_EMAIL)

# ==========================================================
# 📝 LOGGING
# ==========================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
