# app/utils/auth.py
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.utils.errors import Unauthenticated
from app.utils.security import decode_access_token

# Missing tokens are reported through Unauthenticated like every other auth failure
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Resolve the bearer token to a fresh User row"""
    if not token:
        raise Unauthenticated("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise Unauthenticated("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise Unauthenticated("Could not validate credentials")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise Unauthenticated("Could not validate credentials")

    # Role comes from the stored user, never from the token alone
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthenticated("Could not validate credentials")

    return user
