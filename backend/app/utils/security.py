from typing import Any, Dict

import jwt

from app.core.config import settings
from app.utils.errors import NotAuthenticated


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise NotAuthenticated("Invalid or expired token") from exc


def create_access_token(subject: str, expires_at: int | None = None) -> str:
    """Mint a token the same way the auth service does; used by tooling and tests."""
    payload: Dict[str, Any] = {"sub": subject}
    if expires_at is not None:
        payload["exp"] = expires_at
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
