"""
Shared FastAPI dependencies.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ratings_api.core.security import decode_token
from ratings_api.db.session import get_db
from ratings_api.models.user import User
from ratings_api.services.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def require_allowed_ip(request: Request) -> None:
    blacklist = getattr(request.app.state, "ip_blacklist", None)
    ip_address = client_ip(request)
    if blacklist is not None and blacklist.contains(ip_address):
        logger.warning(f"Blocked request from blacklisted IP {ip_address} to {request.url.path}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing access token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access" or not payload.get("sub"):
        raise unauthorized

    user = db.get(User, payload["sub"])
    if user is None:
        raise unauthorized
    return user


def require_self(user_id: str, current_user: User = Depends(get_current_user)) -> User:
    """Path ``user_id`` must be the caller."""
    if current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot act on behalf of another user")
    return current_user


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
