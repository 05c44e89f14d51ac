"""Revoke invitation use case."""

from uuid import UUID

import logfire

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.domain.service import InvitationService
from taskboard.domain.value import InvitationId


class RevokeInvitationRequest(CamelModel):
    invitation_id: str


class RevokeInvitationResponse(CamelModel):
    success: bool = True
    message: str


class RevokeInvitationUseCase(BaseUseCase):
    """Use case for revoking an invitation."""

    def __init__(self, invitation_service: InvitationService) -> None:
        self.invitation_service = invitation_service

    async def execute(self, request: RevokeInvitationRequest) -> RevokeInvitationResponse:
        with logfire.span("revoke_invitation", invitation_id=request.invitation_id):
            await self.invitation_service.revoke(
                InvitationId(UUID(request.invitation_id))
            )
            return RevokeInvitationResponse(message="Invitation revoked successfully")
