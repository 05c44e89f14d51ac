"""Application layer DI providers."""

from dishka import Scope, provide

from taskboard.application.usecase.auth import (
    BeginLoginUseCase,
    CompleteLoginUseCase,
    GetCurrentSessionUseCase,
)
from taskboard.application.usecase.invitation import (
    AcceptInvitationUseCase,
    CreateInvitationUseCase,
    ListInvitationsUseCase,
    ResendInvitationUseCase,
    RevokeInvitationUseCase,
)
from taskboard.config import Settings
from taskboard.domain.service import (
    IdentityService,
    InvitationService,
    JWTService,
    ProfileService,
)
from taskboard.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Application use cases provider - concrete, no mocks needed."""

    # Auth use cases
    @provide(scope=Scope.REQUEST)
    def get_begin_login_use_case(
        self, identity_service: IdentityService, settings: Settings
    ) -> BeginLoginUseCase:
        return BeginLoginUseCase(identity_service=identity_service, settings=settings)

    @provide(scope=Scope.REQUEST)
    def get_complete_login_use_case(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
        jwt_service: JWTService,
    ) -> CompleteLoginUseCase:
        return CompleteLoginUseCase(
            identity_service=identity_service,
            invitation_service=invitation_service,
            jwt_service=jwt_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_current_session_use_case(
        self, jwt_service: JWTService, profile_service: ProfileService
    ) -> GetCurrentSessionUseCase:
        return GetCurrentSessionUseCase(
            jwt_service=jwt_service, profile_service=profile_service
        )

    # Invitation use cases
    @provide(scope=Scope.REQUEST)
    def get_create_invitation_use_case(
        self, invitation_service: InvitationService, settings: Settings
    ) -> CreateInvitationUseCase:
        return CreateInvitationUseCase(
            invitation_service=invitation_service, settings=settings
        )

    @provide(scope=Scope.REQUEST)
    def get_resend_invitation_use_case(
        self, invitation_service: InvitationService
    ) -> ResendInvitationUseCase:
        return ResendInvitationUseCase(invitation_service=invitation_service)

    @provide(scope=Scope.REQUEST)
    def get_revoke_invitation_use_case(
        self, invitation_service: InvitationService
    ) -> RevokeInvitationUseCase:
        return RevokeInvitationUseCase(invitation_service=invitation_service)

    @provide(scope=Scope.REQUEST)
    def get_list_invitations_use_case(
        self, invitation_service: InvitationService
    ) -> ListInvitationsUseCase:
        return ListInvitationsUseCase(invitation_service=invitation_service)

    @provide(scope=Scope.REQUEST)
    def get_accept_invitation_use_case(
        self, invitation_service: InvitationService
    ) -> AcceptInvitationUseCase:
        return AcceptInvitationUseCase(invitation_service=invitation_service)
