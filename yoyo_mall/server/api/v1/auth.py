"""
Authentication Endpoints.

Registration, credentials and Google sign-in, and token introspection.
Access tokens are returned in the response body and sent back as
``Authorization: Bearer <token>``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials

from yoyo_mall.core.models.io.users import (
    GoogleLoginRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    TokenVerifyResponse,
    UserRead,
)
from yoyo_mall.server.services import security
from yoyo_mall.server.services.accounts import AccountService
from yoyo_mall.server.services.deps import CurrentUser, SessionDep, client_ip, security_optional

router = APIRouter()


def _token_response(token: str, user) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        expires_in=security.token_lifetime_seconds(),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a customer account with email and password.",
    response_description="The created account.",
    responses={400: {"description": "Invalid input or email already registered"}},
)
async def register(payload: RegisterRequest, session: SessionDep) -> RegisterResponse:
    user = await AccountService(session).register(payload)
    return RegisterResponse(message="Registration successful", user=UserRead.model_validate(user))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign In",
    description="Exchange email and password for an access token.",
    response_description="Access token and the signed-in user.",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(payload: LoginRequest, request: Request, session: SessionDep) -> TokenResponse:
    """
    Credentials sign-in.

    Every failure (unknown email, social-only account, disabled account,
    wrong password) returns the same ``INVALID_CREDENTIALS`` error. A login
    record with the client IP and user agent is stored on success.
    """
    token, user = await AccountService(session).login(
        payload.email, payload.password, client_ip(request), request.headers.get("user-agent")
    )
    return _token_response(token, user)


@router.post(
    "/google",
    response_model=TokenResponse,
    summary="Google Sign In",
    description="Exchange a Google ID token for an access token, creating the account on first sign-in.",
    response_description="Access token and the signed-in user.",
    responses={401: {"description": "Google rejected the token"}},
)
async def google_login(payload: GoogleLoginRequest, request: Request, session: SessionDep) -> TokenResponse:
    identity = await security.verify_google_id_token(payload.id_token)
    token, user = await AccountService(session).google_login(
        identity, client_ip(request), request.headers.get("user-agent")
    )
    return _token_response(token, user)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current User",
    description="Return the account behind the bearer token.",
    responses={401: {"description": "Missing or invalid token"}},
)
async def me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.get(
    "/verify",
    response_model=TokenVerifyResponse,
    summary="Verify Token",
    description="Validate the bearer token and return its claims.",
    responses={401: {"description": "Missing, expired or invalid token"}},
)
async def verify(
    user: CurrentUser,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> TokenVerifyResponse:
    claims = security.decode_access_token(credentials.credentials)
    return TokenVerifyResponse(valid=True, user=claims.model_dump())
