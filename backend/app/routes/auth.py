"""
Tulisin Backend — Auth Route Handlers
======================================

What:  POST /auth/register, POST /auth/login, POST /auth/logout, GET /auth/me.
Why:   Issues the bearer tokens every other router requires.
How:   Bodies are validated by the auth schemas (email normalized there);
       AuthService does the work. Logout is stateless: tokens are not
       tracked server-side, the client simply discards its token.
"""

import logging

from fastapi import APIRouter, Depends, status

from app.dependencies import get_auth_service, get_current_user
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from app.schemas.common import ErrorResponse, SuccessResponse, ValidationErrorResponse
from app.security import TokenPayload
from app.services.auth_service import AuthResult, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        token=result.token.token,
        expires_at=result.token.expires_at,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid registration data", "model": ValidationErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth.register(name=body.name, email=body.email, password=body.password)
    return _auth_response(result)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid login data", "model": ValidationErrorResponse},
        401: {"description": "Wrong email or password", "model": ErrorResponse},
    },
    summary="Exchange credentials for an access token",
)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth.login(email=body.email, password=body.password)
    return _auth_response(result)


@router.post(
    "/logout",
    response_model=SuccessResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Log out (client discards its token)",
)
async def logout(current: TokenPayload = Depends(get_current_user)) -> SuccessResponse:
    logger.info("User %s logged out", current.user_id)
    return SuccessResponse(success=True, message="Logout successful")


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Current user profile",
)
async def me(
    current: TokenPayload = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await auth.get_current_user(current.user_id)
    return UserResponse.model_validate(user)
