"""Domain layer DI providers."""

from dishka import Scope, provide

from taskboard.config import AuthSettings, InvitationSettings, Settings
from taskboard.domain.repository import InvitationRepository, ProfileRepository
from taskboard.domain.service import (
    IdentityProvider,
    IdentityService,
    InvitationService,
    JWTService,
    ProfileService,
)
from taskboard.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    """

    scope = Scope.REQUEST

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        return JWTService(auth_settings=auth_settings)

    @provide
    def get_identity_service(
        self, provider: IdentityProvider, invitation_settings: InvitationSettings
    ) -> IdentityService:
        return IdentityService(
            provider=provider, invitation_settings=invitation_settings
        )

    @provide
    def get_profile_service(
        self, profile_repository: ProfileRepository
    ) -> ProfileService:
        return ProfileService(profile_repository=profile_repository)

    @provide
    def get_invitation_service(
        self,
        invitation_repository: InvitationRepository,
        profile_repository: ProfileRepository,
        identity_service: IdentityService,
        settings: Settings,
    ) -> InvitationService:
        """Provide the invitation lifecycle service."""
        return InvitationService(
            invitation_repository=invitation_repository,
            profile_repository=profile_repository,
            identity_service=identity_service,
            invitation_settings=settings.invitations,
            base_url=settings.base_url,
        )
