"""
Request Dependencies.

Database session, authenticated user and admin guards for API endpoints.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from yoyo_mall.core.database.entities.users import User
from yoyo_mall.core.database.session import get_session
from yoyo_mall.core.exceptions import AuthenticationError, PermissionDeniedError
from yoyo_mall.core.logging_config import get_logger

from .security import decode_access_token, is_admin

logger = get_logger(__name__)

security_optional = HTTPBearer(auto_error=False)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user_optional(
    session: SessionDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> Optional[User]:
    """
    Resolve the bearer token to a user, or ``None`` without a token.

    An invalid or expired token is still an error: clients that send a
    token expect it to be honoured.
    """
    if credentials is None:
        return None
    claims = decode_access_token(credentials.credentials)
    user = await session.get(User, claims.sub)
    if user is None or not user.is_active:
        logger.warning(f"Token subject {claims.sub} is missing or inactive")
        raise AuthenticationError("User not found or inactive", code="UNAUTHORIZED")
    return user


async def get_current_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    """
    Require an authenticated user.

    Raises:
        AuthenticationError: 401 ``UNAUTHORIZED`` when no bearer token was sent
    """
    if user is None:
        raise AuthenticationError("Authentication required", code="UNAUTHORIZED")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Require an ADMIN or SUPER_ADMIN user (403 ``FORBIDDEN`` otherwise)."""
    if not is_admin(user.role):
        raise PermissionDeniedError("Admin access required", code="FORBIDDEN")
    return user


def client_ip(request: Request) -> Optional[str]:
    """First ``x-forwarded-for`` hop, then ``x-real-ip``, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_current_user_optional)]
AdminUser = Annotated[User, Depends(require_admin)]
