import html
import math
import secrets
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from bazaar.core.config import settings


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    pwd_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode('utf-8')

def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its hash"""
    pwd_bytes = password.encode('utf-8')
    hashed_bytes = hashed.encode('utf-8')
    try:
        return bcrypt.checkpw(pwd_bytes, hashed_bytes)
    except ValueError:
        # stored value is not a bcrypt hash
        return False

def create_access_token(data: dict, expires_at: datetime) -> str:
    payload = data.copy()
    payload.update({"exp": expires_at})
    token = jwt.encode(payload, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return token

def decode_access_token(token: str, verify_exp: bool = True) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except JWTError:
        return None

def new_session_token(username: str, expires_at: datetime) -> str:
    # jti keeps two logins within the same second from colliding
    return create_access_token({"sub": username, "jti": secrets.token_hex(16)}, expires_at)


def sanitize_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return html.escape(text, quote=True)


def is_currently_banned(user, now: datetime) -> bool:
    """Live ban check; the stored can_login flag may be stale."""
    return (
        not user.can_login
        and user.ban_expiry is not None
        and user.ban_expiry > now
    )

def ban_days_remaining(ban_expiry: datetime, now: datetime) -> int:
    remaining = ban_expiry - now
    return max(0, math.ceil(remaining / timedelta(days=1)))
