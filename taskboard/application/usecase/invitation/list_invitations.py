"""List invitations use case."""

import logfire
from pydantic import Field

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.application.usecase.invitation.common import InvitationItem
from taskboard.domain.service import InvitationService
from taskboard.domain.value import InvitationStatus


class ListInvitationsRequest(CamelModel):
    """Listing filter. No status means all invitations."""

    status: InvitationStatus | None = None
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class ListInvitationsResponse(CamelModel):
    invitations: list[InvitationItem]
    total: int
    limit: int
    offset: int


class ListInvitationsUseCase(BaseUseCase):
    """Use case for the admin invitation listing."""

    def __init__(self, invitation_service: InvitationService) -> None:
        self.invitation_service = invitation_service

    async def execute(self, request: ListInvitationsRequest) -> ListInvitationsResponse:
        with logfire.span(
            "list_invitations",
            status=request.status.value if request.status else "all",
        ):
            invitations, total = await self.invitation_service.list_invitations(
                status=request.status, limit=request.limit, offset=request.offset
            )
            return ListInvitationsResponse(
                invitations=[InvitationItem.from_invitation(i) for i in invitations],
                total=total,
                limit=request.limit,
                offset=request.offset,
            )
