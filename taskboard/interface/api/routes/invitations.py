"""Admin invitation routes."""

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from taskboard.application.usecase.auth import GetCurrentSessionUseCase
from taskboard.application.usecase.invitation import (
    CreateInvitationRequest,
    CreateInvitationResponse,
    CreateInvitationUseCase,
    ListInvitationsRequest,
    ListInvitationsResponse,
    ListInvitationsUseCase,
    ResendInvitationRequest,
    ResendInvitationResponse,
    ResendInvitationUseCase,
    RevokeInvitationRequest,
    RevokeInvitationResponse,
    RevokeInvitationUseCase,
)
from taskboard.config import Settings
from taskboard.domain.error import ValidationError
from taskboard.domain.value import InvitationStatus
from taskboard.interface.api.session import require_admin

router = APIRouter(prefix="/admin", tags=["admin"], route_class=DishkaRoute)


class CreateInvitationAPIRequest(BaseModel):
    """API request for inviting an email."""

    email: str = ""
    role: str = "user"
    message: str | None = None


@router.post("/invite", response_model=CreateInvitationResponse)
async def create_invitation(
    body: CreateInvitationAPIRequest,
    request: Request,
    create_invitation_use_case: FromDishka[CreateInvitationUseCase],
    session_use_case: FromDishka[GetCurrentSessionUseCase],
    settings: FromDishka[Settings],
) -> CreateInvitationResponse:
    """Invite an email, or renew the email's existing invitation.

    Example:
        POST /admin/invite
        {"email": "ada@example.com", "role": "user"}

        Response:
        {
            "success": true,
            "message": "Invitation sent to ada@example.com",
            "inviteLink": "https://board.example.com/auth/accept-invite?token=...",
            "email": "ada@example.com",
            "role": "user",
            "expiresIn": "30 days",
            "invitationStats": {"sendCount": 1, "dailySendCount": 1, "remainingToday": 2}
        }
    """
    session = await require_admin(request, session_use_case, settings)
    return await create_invitation_use_case.execute(
        CreateInvitationRequest(
            email=body.email,
            role=body.role,
            message=body.message,
            invited_by=str(session.profile_id),
        )
    )


@router.patch("/invitations/{invitation_id}", response_model=ResendInvitationResponse)
async def resend_invitation(
    invitation_id: UUID,
    request: Request,
    resend_invitation_use_case: FromDishka[ResendInvitationUseCase],
    session_use_case: FromDishka[GetCurrentSessionUseCase],
    settings: FromDishka[Settings],
) -> ResendInvitationResponse:
    """Send an invitation again, refreshing its expiry."""
    await require_admin(request, session_use_case, settings)
    return await resend_invitation_use_case.execute(
        ResendInvitationRequest(invitation_id=str(invitation_id))
    )


@router.delete("/invitations/{invitation_id}", response_model=RevokeInvitationResponse)
async def revoke_invitation(
    invitation_id: UUID,
    request: Request,
    revoke_invitation_use_case: FromDishka[RevokeInvitationUseCase],
    session_use_case: FromDishka[GetCurrentSessionUseCase],
    settings: FromDishka[Settings],
) -> RevokeInvitationResponse:
    """Revoke an invitation that has not been accepted."""
    await require_admin(request, session_use_case, settings)
    return await revoke_invitation_use_case.execute(
        RevokeInvitationRequest(invitation_id=str(invitation_id))
    )


@router.get("/invitations", response_model=ListInvitationsResponse)
async def list_invitations(
    request: Request,
    list_invitations_use_case: FromDishka[ListInvitationsUseCase],
    session_use_case: FromDishka[GetCurrentSessionUseCase],
    settings: FromDishka[Settings],
    status_filter: str = Query(default="all", alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> ListInvitationsResponse:
    """List invitations newest first.

    Args:
        status_filter: pending, accepted, expired, revoked or all
        limit: Maximum number of results (1-500)
        offset: Number of results to skip
    """
    await require_admin(request, session_use_case, settings)
    try:
        status = None if status_filter == "all" else InvitationStatus(status_filter)
    except ValueError:
        raise ValidationError(f"Invalid status filter: {status_filter}")
    return await list_invitations_use_case.execute(
        ListInvitationsRequest(status=status, limit=limit, offset=offset)
    )
