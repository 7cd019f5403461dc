from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from ideas_api.core.limiter import limiter, request_code_limit, verify_limit, refresh_limit
from ideas_api.dependencies import get_auth_service, get_current_user_id, get_session_service
from ideas_api.schemas import (
    VerifyCodeRequest,
    RefreshRequest,
    LogoutRequest,
    TokenPairResponse,
    RateLimitedResponse,
)
from ideas_api.services import AuthService, SessionService, TokenPair

router = APIRouter(tags=["auth"])


def _token_response(pair: TokenPair) -> TokenPairResponse:
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.get(
    "/auth/{phone}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_429_TOO_MANY_REQUESTS: {"model": RateLimitedResponse}},
)
@limiter.limit(request_code_limit)
async def request_code(
    request: Request,
    phone: str,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    await auth.request_code(phone)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/auth", response_model=TokenPairResponse)
@limiter.limit(verify_limit)
async def verify_code(
    request: Request,
    body: VerifyCodeRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    return _token_response(await auth.verify(body.phone, body.otp, body.name))


@router.post("/auth/refresh", response_model=TokenPairResponse)
@limiter.limit(refresh_limit)
async def refresh(
    request: Request,
    body: RefreshRequest,
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    return _token_response(await sessions.refresh(body.refresh_token))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: LogoutRequest,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    await sessions.logout(body.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/logout-everywhere", status_code=status.HTTP_204_NO_CONTENT)
async def logout_everywhere(
    user_id: Annotated[str, Depends(get_current_user_id)],
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    await sessions.logout_everywhere(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
