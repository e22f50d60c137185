from datetime import datetime, timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext

from school_app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

# ==========================================================
# 🔒 PASSWORD HASHING CONFIG
# ==========================================================

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto"
)

# bcrypt only supports 72 BYTES
MAX_BCRYPT_BYTES = 72


def _truncate_password(password: str) -> bytes:
    """
    Ensures password respects bcrypt 72-byte limit.
    We slice AFTER encoding to avoid multi-byte UTF-8 overflow.
    """
    if not password:
        return b""
    return password.encode("utf-8")[:MAX_BCRYPT_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify plain password against hashed password.
    A malformed stored hash counts as a mismatch.
    """
    try:
        return pwd_context.verify(_truncate_password(plain_password), hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_truncate_password(password))


# ==========================================================
# 🔑 JWT UTILITIES
# ==========================================================

def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """
    Decode JWT token and return email (sub).
    Returns None if invalid or expired.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None

    email: Optional[str] = payload.get("sub")
    return email
