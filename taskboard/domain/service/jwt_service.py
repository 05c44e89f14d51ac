"""Session token domain service."""

import logfire

from taskboard.config import AuthSettings
from taskboard.domain.model.profile import Profile
from taskboard.util.jwt import TokenPayload, create_token, verify_token

from .base import Service


class JWTService(Service):
    """Domain service for session cookie tokens."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        """Initialize JWT service.

        Args:
            auth_settings: Authentication settings
        """
        self.auth_settings = auth_settings

    def create_token(self, profile: Profile) -> str:
        """Create a session token for an active profile.

        Args:
            profile: Profile the session belongs to

        Returns:
            JWT token string
        """
        with logfire.span("jwt_service.create_token", profile_id=str(profile.id)):
            token = create_token(
                str(profile.id), profile.email.root, profile.role.value, self.auth_settings
            )
            logfire.info("Session token created", profile_id=str(profile.id))
            return token

    def verify_token(self, token: str) -> TokenPayload:
        """Verify a session token and extract its payload.

        Raises:
            JWTError: If token is invalid or expired
        """
        with logfire.span("jwt_service.verify_token"):
            try:
                return verify_token(token, self.auth_settings)
            except Exception as e:
                logfire.warn("Session token verification failed", error=str(e))
                raise
