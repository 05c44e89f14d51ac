"""Create invitation use case."""

from uuid import UUID

import logfire

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.application.usecase.invitation.common import InvitationStatsView
from taskboard.config import Settings
from taskboard.domain.service import InvitationService
from taskboard.domain.value import ProfileId, Role


class CreateInvitationRequest(CamelModel):
    """Admin request to invite an email."""

    email: str = ""
    role: str = Role.USER.value
    message: str | None = None
    invited_by: str | None = None


class CreateInvitationResponse(CamelModel):
    """Result of an invite, including the link to share."""

    success: bool = True
    message: str
    invite_link: str
    email: str
    role: Role
    expires_in: str
    invitation_stats: InvitationStatsView


class CreateInvitationUseCase(BaseUseCase):
    """Use case for inviting an email, renewing any earlier invitation."""

    def __init__(self, invitation_service: InvitationService, settings: Settings) -> None:
        self.invitation_service = invitation_service
        self.settings = settings

    async def execute(self, request: CreateInvitationRequest) -> CreateInvitationResponse:
        """Create or renew the invitation for an email.

        Raises:
            ValidationError: If email or role are malformed
            AlreadyActiveError: If the email already has an active account
            RateLimitedError: If the daily send cap is reached
        """
        with logfire.span("create_invitation", email=request.email, role=request.role):
            invited_by = (
                ProfileId(UUID(request.invited_by)) if request.invited_by else None
            )
            invitation = await self.invitation_service.create_or_renew(
                email=request.email,
                role=request.role,
                message=request.message,
                invited_by=invited_by,
            )
            stats = self.invitation_service.stats(invitation)

            return CreateInvitationResponse(
                message=f"Invitation sent to {invitation.email}",
                invite_link=self.invitation_service.invite_link(invitation),
                email=invitation.email.root,
                role=invitation.role,
                expires_in=f"{self.settings.invitations.expiry_days} days",
                invitation_stats=InvitationStatsView.from_stats(stats),
            )
