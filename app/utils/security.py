# app/utils/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from app.config.security import SecurityConfig

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES],
            hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a JWT carrying the given claims plus an expiry"""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(days=SecurityConfig.AUTH['token_expire_days'])
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(
        to_encode,
        SecurityConfig.AUTH['secret_key'],
        algorithm=SecurityConfig.AUTH['algorithm']
    )


def decode_access_token(token: str) -> Optional[dict]:
    """Verify a JWT and return its claims, or None when invalid or expired"""
    try:
        return jwt.decode(
            token,
            SecurityConfig.AUTH['secret_key'],
            algorithms=[SecurityConfig.AUTH['algorithm']]
        )
    except JWTError:
        return None
