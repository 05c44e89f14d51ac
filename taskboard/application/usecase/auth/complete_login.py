"""Complete login use case."""

import logfire

from taskboard.adapter.error import ProviderError
from taskboard.application.usecase.auth.begin_login import safe_next_path
from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.domain.error import AccessDeniedError, ValidationError
from taskboard.domain.service import IdentityService, InvitationService, JWTService
from taskboard.domain.value import Role


class CompleteLoginRequest(CamelModel):
    """OAuth callback parameters plus the verifier kept since login began."""

    code: str
    code_verifier: str
    next: str | None = None


class CompleteLoginResponse(CamelModel):
    token: str
    profile_id: str
    email: str
    role: Role
    redirect_path: str


class CompleteLoginUseCase(BaseUseCase):
    """Use case for the OAuth callback.

    Exchanges the code, reconciles the confirmed identity with invitations and
    profiles, then issues the session token.
    """

    def __init__(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
        jwt_service: JWTService,
    ) -> None:
        """Initialize complete login use case.

        Args:
            identity_service: Identity provider domain service
            invitation_service: Invitation lifecycle domain service
            jwt_service: Session token domain service
        """
        self.identity_service = identity_service
        self.invitation_service = invitation_service
        self.jwt_service = jwt_service

    async def execute(self, request: CompleteLoginRequest) -> CompleteLoginResponse:
        """Execute the callback flow.

        Raises:
            AccessDeniedError: If the identity was never invited or is inactive
                without an invitation; the provider session is signed out first
            ValidationError: If the provider reports no email for the identity
            ProviderError: If the code exchange fails
        """
        provider_session = await self.identity_service.complete_login(
            request.code, request.code_verifier
        )
        identity = provider_session.user
        if not identity.email:
            raise ValidationError("Identity provider returned no email")

        with logfire.span(
            "complete_login", identity_id=str(identity.id), email=identity.email
        ):
            try:
                profile = (
                    await self.invitation_service.reconcile_on_identity_confirmation(
                        identity.id, identity.email
                    )
                )
            except AccessDeniedError as e:
                await self._sign_out(provider_session.access_token, e.reason)
                raise

            token = self.jwt_service.create_token(profile)
            logfire.info(
                "Login completed",
                profile_id=str(profile.id),
                role=profile.role.value,
            )
            return CompleteLoginResponse(
                token=token,
                profile_id=str(profile.id),
                email=profile.email.root,
                role=profile.role,
                redirect_path=self._redirect_path(profile.role, request.next),
            )

    @staticmethod
    def _redirect_path(role: Role, next_path: str | None) -> str:
        home = "/admin" if role == Role.ADMIN else "/user"
        target = safe_next_path(next_path)
        if target is None:
            return home
        # Admin pages are only a destination for admins
        if (target == "/admin" or target.startswith("/admin/")) and role != Role.ADMIN:
            return home
        return target

    async def _sign_out(self, access_token: str, reason: str) -> None:
        try:
            await self.identity_service.sign_out(access_token)
        except ProviderError as e:
            # The denial still stands; the provider session expires on its own
            logfire.error(
                "Sign-out after denied login failed", reason=reason, error=str(e)
            )
