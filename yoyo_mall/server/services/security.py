"""
Password hashing, access tokens and Google sign-in verification.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs signed with
``JWT_SECRET`` and carry enough of the user (id, role, name, picture,
provider) for clients to render without another round trip.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import httpx
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict

from yoyo_mall.core.database.entities.users import User, UserRole
from yoyo_mall.core.exceptions import AuthenticationError
from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core.config import settings

logger = get_logger(__name__)

ADMIN_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value})


class TokenClaims(BaseModel):
    """Decoded access token."""

    model_config = ConfigDict(frozen=True)

    sub: str
    email: Optional[str] = None
    role: str = UserRole.CUSTOMER.value
    name: Optional[str] = None
    picture: Optional[str] = None
    provider: Optional[str] = None
    iat: int
    exp: int


class GoogleIdentity(BaseModel):
    """Verified subset of a Google ID token."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=settings.auth.bcrypt_rounds)).decode("utf-8")


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def is_admin(role: Optional[str]) -> bool:
    return role in ADMIN_ROLES


def token_lifetime_seconds() -> int:
    return settings.auth.jwt_expire_days * 24 * 60 * 60


def create_access_token(user: User, now: Optional[datetime] = None) -> str:
    """Sign an access token for ``user``.

    Args:
        user: The authenticated account
        now: Issue time override (tests)

    Returns:
        Encoded JWT string
    """
    auth = settings.auth
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": user.id,
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name,
        "picture": user.avatar,
        "provider": user.provider,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(days=auth.jwt_expire_days)).timestamp()),
    }
    return jwt.encode(claims, auth.jwt_secret, algorithm=auth.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verify and decode an access token.

    Raises:
        AuthenticationError: ``TOKEN_EXPIRED`` or ``INVALID_TOKEN``
    """
    auth = settings.auth
    try:
        payload = jwt.decode(token, auth.jwt_secret, algorithms=[auth.jwt_algorithm])
    except ExpiredSignatureError:
        logger.warning("Access token has expired")
        raise AuthenticationError("Token has expired", code="TOKEN_EXPIRED")
    except JWTError as e:
        logger.warning(f"Access token validation failed: {e}")
        raise AuthenticationError("Invalid token", code="INVALID_TOKEN")

    if not payload.get("sub"):
        raise AuthenticationError("Invalid token: missing user ID", code="INVALID_TOKEN")
    return TokenClaims.model_validate(payload)


async def verify_google_id_token(id_token: str, client: Optional[httpx.AsyncClient] = None) -> GoogleIdentity:
    """Verify a Google ID token against Google's tokeninfo endpoint.

    Args:
        id_token: The raw ID token from the browser sign-in flow
        client: Optional shared HTTP client

    Returns:
        The verified identity

    Raises:
        AuthenticationError: ``GOOGLE_AUTH_FAILED`` when Google rejects the token,
            the audience does not match ``GOOGLE_CLIENT_ID`` or the email is unverified
    """
    auth = settings.auth
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=10)
    try:
        response = await http.get(auth.google_tokeninfo_url, params={"id_token": id_token})
    except httpx.HTTPError as e:
        logger.warning(f"Google tokeninfo request failed: {e}")
        raise AuthenticationError("Google sign-in failed", code="GOOGLE_AUTH_FAILED")
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code != 200:
        logger.info(f"Google rejected ID token: status={response.status_code}")
        raise AuthenticationError("Google sign-in failed", code="GOOGLE_AUTH_FAILED")

    info = response.json()
    if auth.google_client_id and info.get("aud") != auth.google_client_id:
        logger.warning("Google ID token audience mismatch")
        raise AuthenticationError("Google sign-in failed", code="GOOGLE_AUTH_FAILED")
    if str(info.get("email_verified", "false")).lower() != "true" or not info.get("email"):
        raise AuthenticationError("Google account email is not verified", code="GOOGLE_AUTH_FAILED")

    return GoogleIdentity(
        email=info["email"].lower(),
        name=info.get("name"),
        picture=info.get("picture"),
        given_name=info.get("given_name"),
        family_name=info.get("family_name"),
    )
