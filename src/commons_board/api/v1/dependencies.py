"""Shared API dependencies for the database session and the administrator boundary."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from commons_board.core.security import decode_admin_token
from commons_board.db.session import get_db

# HTTP Bearer scheme for administrator tokens
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_admin(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Return the administrator id carried by the bearer token.

    Tokens are issued by the external admin login; only the signature, expiry
    and ``role`` claim are checked here.

    Raises:
        HTTPException: If the token is missing, invalid or not an admin token
    """
    admin_id = decode_admin_token(credentials.credentials)
    if admin_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin_id


AdminDep = Annotated[str, Depends(get_current_admin)]
