# backend/voicepost/auth.py
"""
Authentication Utility Functions

Stateless bearer-token authentication. Tokens are HS256 JWTs whose "sub"
claim holds the user id; every ownership-scoped store call is made with the
id resolved here.

Functions:
- create_access_token(): Issue a signed token for a user at signup / login.
- get_current_user(): Dependency that requires a valid token.
- get_current_user_optional(): Dependency for routes that also serve guests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from voicepost.core.config import Settings
from voicepost.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(user: User, settings: Settings) -> str:
    """
    Create a signed JWT for ``user``.

    Parameters:
        user (User): The authenticated user.
        settings (Settings): Supplies secret_key, algorithm and token lifetime.

    Returns:
        str: Encoded token to be sent as "Authorization: Bearer <token>".
    """
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": user.id, "username": user.username, "exp": expires}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_user_id(token: str, settings: Settings) -> Optional[str]:
    """Return the user id carried by a valid token, or None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    return user_id if isinstance(user_id, str) and user_id else None


async def get_current_user_optional(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[User]:
    """
    Resolve the caller from the Authorization header, if any.

    Returns None for missing, invalid or expired tokens and for tokens of
    users that no longer exist.
    """
    if not token:  # no error if token missing
        return None
    settings: Settings = request.app.state.settings
    user_id = decode_user_id(token, settings)
    if user_id is None:
        return None
    return await request.app.state.store.get_user(user_id)


async def get_current_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Require an authenticated caller.

    Raises:
        HTTPException (401): If the token is missing, invalid, or the user is unknown.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
