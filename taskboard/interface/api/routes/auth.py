"""Authentication routes."""

import logging
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from taskboard.adapter.error import AdapterError
from taskboard.application.usecase.auth import (
    BeginLoginRequest,
    BeginLoginUseCase,
    CompleteLoginRequest,
    CompleteLoginUseCase,
    GetCurrentSessionRequest,
    GetCurrentSessionResponse,
    GetCurrentSessionUseCase,
)
from taskboard.application.usecase.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    AcceptInvitationUseCase,
)
from taskboard.config import Settings
from taskboard.domain.error import AccessDeniedError, DomainError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)

# Holds the PKCE verifier between /auth/login and /auth/callback
VERIFIER_COOKIE = "auth_verifier"
VERIFIER_MAX_AGE = 10 * 60


class AcceptInvitationAPIRequest(BaseModel):
    token: str = ""


class LogoutResponse(BaseModel):
    """Logout response."""

    success: bool
    message: str


@router.post("/accept-invite", response_model=AcceptInvitationResponse)
async def accept_invitation(
    body: AcceptInvitationAPIRequest,
    accept_invitation_use_case: FromDishka[AcceptInvitationUseCase],
) -> AcceptInvitationResponse:
    """Accept an invitation by token.

    Already-accepted invitations answer 400 with ALREADY_ACCEPTED or
    ALREADY_REGISTERED and carry email and role, so the page can still send
    the invitee on to sign in.
    """
    return await accept_invitation_use_case.execute(
        AcceptInvitationRequest(token=body.token)
    )


@router.get("/login")
async def login(
    begin_login_use_case: FromDishka[BeginLoginUseCase],
    settings: FromDishka[Settings],
    next: str | None = None,
) -> RedirectResponse:
    """Send the browser to the identity provider's sign-in page."""
    login_response = await begin_login_use_case.execute(BeginLoginRequest(next=next))

    redirect = RedirectResponse(
        url=login_response.authorization_url, status_code=status.HTTP_302_FOUND
    )
    redirect.set_cookie(
        key=VERIFIER_COOKIE,
        value=login_response.code_verifier,
        httponly=True,
        secure=_secure_cookies(settings),
        samesite="lax",
        path="/auth",
        max_age=VERIFIER_MAX_AGE,
    )
    return redirect


@router.get("/callback")
async def callback(
    request: Request,
    complete_login_use_case: FromDishka[CompleteLoginUseCase],
    settings: FromDishka[Settings],
    code: str | None = None,
    next: str | None = None,
) -> RedirectResponse:
    """Handle the OAuth callback.

    Redirects to the ``next`` path given at login (else /admin or /user)
    with the session cookie set, to /auth/access-denied?reason=... when the
    identity may not use the board, and to /auth/auth-code-error when the
    exchange itself fails.

    Example:
        GET /auth/callback?code=abc123

        Redirects to: https://board.example.com/admin
        Sets cookie: auth_token
    """
    code_verifier = request.cookies.get(VERIFIER_COOKIE)
    if not code or not code_verifier:
        logger.warning("OAuth callback without code or verifier")
        return _redirect(settings, "/auth/auth-code-error")

    try:
        login_response = await complete_login_use_case.execute(
            CompleteLoginRequest(code=code, code_verifier=code_verifier, next=next)
        )
    except AccessDeniedError as e:
        logger.info(f"Login denied: reason={e.reason}")
        redirect = _redirect(
            settings, f"/auth/access-denied?{urlencode({'reason': e.reason})}"
        )
        redirect.delete_cookie(VERIFIER_COOKIE, path="/auth")
        return redirect
    except (DomainError, AdapterError) as e:
        logger.error(f"OAuth callback failed: {e}")
        return _redirect(settings, "/auth/auth-code-error")

    logger.info(f"Login successful: profile={login_response.profile_id}")
    redirect = _redirect(settings, login_response.redirect_path)
    redirect.set_cookie(
        key=settings.auth.cookie_name,
        value=login_response.token,
        httponly=True,
        secure=_secure_cookies(settings),
        samesite="lax",
        path="/",
        max_age=settings.auth.jwt_expiry_days * 24 * 60 * 60,
    )
    redirect.delete_cookie(VERIFIER_COOKIE, path="/auth")
    return redirect


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response, settings: FromDishka[Settings]) -> LogoutResponse:
    """Clear the session cookie."""
    response.delete_cookie(key=settings.auth.cookie_name, path="/")
    return LogoutResponse(success=True, message="Successfully logged out")


@router.get("/me", response_model=GetCurrentSessionResponse)
async def me(
    request: Request,
    session_use_case: FromDishka[GetCurrentSessionUseCase],
    settings: FromDishka[Settings],
) -> GetCurrentSessionResponse:
    """Current session, or ``authenticated: false`` without raising."""
    return await session_use_case.execute(
        GetCurrentSessionRequest(token=request.cookies.get(settings.auth.cookie_name))
    )


def _redirect(settings: Settings, path: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.base_url}{path}", status_code=status.HTTP_302_FOUND
    )


def _secure_cookies(settings: Settings) -> bool:
    return settings.environment == "production"
