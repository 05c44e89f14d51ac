"""Session resolution for route handlers."""

from fastapi import Request

from taskboard.application.usecase.auth import (
    GetCurrentSessionRequest,
    GetCurrentSessionUseCase,
)
from taskboard.config import Settings
from taskboard.domain.value import Session
from taskboard.interface.error import ForbiddenError, UnauthorizedError


async def require_session(
    request: Request,
    use_case: GetCurrentSessionUseCase,
    settings: Settings,
) -> Session:
    """Resolve the caller's session from the cookie.

    Raises:
        UnauthorizedError: If the cookie is missing, invalid, or names a
            profile that is no longer active
    """
    token = request.cookies.get(settings.auth.cookie_name)
    response = await use_case.execute(GetCurrentSessionRequest(token=token))
    session = response.to_session()
    if session is None:
        raise UnauthorizedError("Unauthorized")
    return session


async def require_admin(
    request: Request,
    use_case: GetCurrentSessionUseCase,
    settings: Settings,
) -> Session:
    """Resolve the caller's session and require the admin role.

    Raises:
        UnauthorizedError: If there is no valid session
        ForbiddenError: If the caller is not an admin
    """
    session = await require_session(request, use_case, settings)
    if not session.is_admin:
        raise ForbiddenError("Forbidden - Admin access required")
    return session
