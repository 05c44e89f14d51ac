"""Resend invitation use case."""

from uuid import UUID

import logfire

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.application.usecase.invitation.common import InvitationStatsView
from taskboard.domain.service import InvitationService
from taskboard.domain.value import InvitationId


class ResendInvitationRequest(CamelModel):
    invitation_id: str


class ResendInvitationResponse(CamelModel):
    success: bool = True
    message: str
    invite_link: str
    invitation_stats: InvitationStatsView


class ResendInvitationUseCase(BaseUseCase):
    """Use case for sending an existing invitation again."""

    def __init__(self, invitation_service: InvitationService) -> None:
        self.invitation_service = invitation_service

    async def execute(self, request: ResendInvitationRequest) -> ResendInvitationResponse:
        with logfire.span("resend_invitation", invitation_id=request.invitation_id):
            invitation = await self.invitation_service.resend(
                InvitationId(UUID(request.invitation_id))
            )
            stats = self.invitation_service.stats(invitation)

            return ResendInvitationResponse(
                message=f"Invitation resent to {invitation.email}",
                invite_link=self.invitation_service.invite_link(invitation),
                invitation_stats=InvitationStatsView.from_stats(stats),
            )
