"""Begin login use case."""

from urllib.parse import urlencode

import logfire

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.config import Settings
from taskboard.domain.service import IdentityService


def safe_next_path(next_path: str | None) -> str | None:
    """Return the path when it stays on this site, else None."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return None


class BeginLoginRequest(CamelModel):
    """Start of the OAuth sign-in. ``next`` is a path to return to afterwards."""

    next: str | None = None


class BeginLoginResponse(CamelModel):
    authorization_url: str
    code_verifier: str


class BeginLoginUseCase(BaseUseCase):
    """Use case for sending the browser to the identity provider."""

    def __init__(self, identity_service: IdentityService, settings: Settings) -> None:
        self.identity_service = identity_service
        self.settings = settings

    async def execute(self, request: BeginLoginRequest) -> BeginLoginResponse:
        redirect_to = f"{self.settings.base_url}/auth/callback"
        next_path = safe_next_path(request.next)
        if next_path:
            redirect_to = f"{redirect_to}?{urlencode({'next': next_path})}"

        with logfire.span("begin_login", redirect_to=redirect_to):
            authorization = self.identity_service.authorize_url(redirect_to)
            return BeginLoginResponse(
                authorization_url=authorization.url,
                code_verifier=authorization.code_verifier,
            )
