"""Token helpers for the administrator boundary.

Administrators authenticate against an external service that issues JWTs;
this module only encodes (for tooling and tests) and verifies them.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from commons_board.core.settings import settings
from commons_board.db.time import utcnow

ADMIN_ROLE = "admin"


def create_admin_token(admin_id: str, expires_minutes: int | None = None) -> str:
    """Return a signed bearer token identifying an administrator."""
    expire = utcnow() + timedelta(
        minutes=expires_minutes or settings.admin_token_expire_minutes,
    )
    payload: dict[str, Any] = {"sub": admin_id, "role": ADMIN_ROLE, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_admin_token(token: str) -> str | None:
    """Return the administrator id carried by ``token`` or None when it is not valid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("role") != ADMIN_ROLE:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
