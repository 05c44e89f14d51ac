"""Accept invitation use case."""

import logfire

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.domain.service import InvitationService
from taskboard.domain.value import Role


class AcceptInvitationRequest(CamelModel):
    token: str = ""


class AcceptInvitationResponse(CamelModel):
    success: bool = True
    message: str
    email: str
    role: Role


class AcceptInvitationUseCase(BaseUseCase):
    """Use case for an invitee accepting their invitation.

    Acceptance only marks the invitation; the account is activated once the
    invitee completes the OAuth sign-in.
    """

    def __init__(self, invitation_service: InvitationService) -> None:
        self.invitation_service = invitation_service

    async def execute(self, request: AcceptInvitationRequest) -> AcceptInvitationResponse:
        with logfire.span("accept_invitation"):
            invitation = await self.invitation_service.accept(request.token)
            return AcceptInvitationResponse(
                message=(
                    "Invitation accepted! Please sign in with Google "
                    "to complete your account setup."
                ),
                email=invitation.email.root,
                role=invitation.role,
            )
