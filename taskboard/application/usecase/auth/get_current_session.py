"""Get current session use case."""

from uuid import UUID

from taskboard.application.usecase.base import BaseUseCase, CamelModel
from taskboard.domain.service import JWTService, ProfileService
from taskboard.domain.value import ProfileId, Role, Session
from taskboard.util.jwt import JWTError


class GetCurrentSessionRequest(CamelModel):
    token: str | None = None


class SessionView(CamelModel):
    profile_id: str
    email: str
    role: Role


class GetCurrentSessionResponse(CamelModel):
    authenticated: bool
    session: SessionView | None = None

    def to_session(self) -> Session | None:
        if not self.session:
            return None
        return Session(
            profile_id=ProfileId(UUID(self.session.profile_id)),
            email=self.session.email,
            role=self.session.role,
        )


class GetCurrentSessionUseCase(BaseUseCase):
    """Use case resolving the session cookie into the caller's session.

    The token only names the profile; role and status are read from the
    profile store on every call.
    """

    def __init__(self, jwt_service: JWTService, profile_service: ProfileService) -> None:
        self.jwt_service = jwt_service
        self.profile_service = profile_service

    async def execute(self, request: GetCurrentSessionRequest) -> GetCurrentSessionResponse:
        if not request.token:
            return GetCurrentSessionResponse(authenticated=False)

        try:
            payload = self.jwt_service.verify_token(request.token)
            profile_id = ProfileId(UUID(payload.sub))
        except (JWTError, ValueError):
            return GetCurrentSessionResponse(authenticated=False)

        session = await self.profile_service.resolve_session(profile_id)
        if session is None:
            return GetCurrentSessionResponse(authenticated=False)

        return GetCurrentSessionResponse(
            authenticated=True,
            session=SessionView(
                profile_id=str(session.profile_id),
                email=session.email,
                role=session.role,
            ),
        )
