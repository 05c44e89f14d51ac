"""Identity provider domain service."""

import asyncio
import time
from abc import ABC, abstractmethod

import logfire

from taskboard.config import InvitationSettings
from taskboard.domain.error import UpstreamFailureError
from taskboard.domain.value import (
    AuthorizationRequest,
    IdentityRecord,
    ProfileId,
    ProviderSession,
)

from .base import Service


class IdentityProvider(ABC):
    """Interface of the hosted identity provider.

    Implementations raise an adapter ``ProviderError`` when the provider
    cannot be reached or rejects a call.
    """

    @abstractmethod
    def authorize_url(self, redirect_to: str) -> AuthorizationRequest:
        """Build the URL that starts the OAuth sign-in with PKCE.

        Args:
            redirect_to: Where the provider sends the browser back with a code

        Returns:
            Authorization URL plus the code verifier for the exchange
        """
        pass

    @abstractmethod
    async def exchange_code_for_session(
        self, code: str, code_verifier: str
    ) -> ProviderSession:
        """Exchange an OAuth callback code for a provider session."""
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Revoke a provider session."""
        pass

    @abstractmethod
    async def get_user(self, user_id: ProfileId) -> IdentityRecord | None:
        """Fetch an identity record by id, None when it does not exist."""
        pass

    @abstractmethod
    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        """Find an identity record by email, None when there is none."""
        pass

    @abstractmethod
    async def invite_user_by_email(
        self, email: str, redirect_to: str, data: dict[str, str]
    ) -> IdentityRecord:
        """Create an unconfirmed identity record and email the invitee.

        Inviting an email whose record is still unconfirmed sends the email
        again and returns the same record.

        Args:
            email: Invitee email
            redirect_to: Where the emailed link lands after verification
            data: Metadata stored on the identity record

        Returns:
            The unconfirmed identity record
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: ProfileId) -> None:
        """Request deletion of an identity record.

        The provider may finish the deletion asynchronously.
        """
        pass


class IdentityService(Service):
    """Domain service wrapping identity provider calls."""

    def __init__(
        self, provider: IdentityProvider, invitation_settings: InvitationSettings
    ) -> None:
        """Initialize identity service.

        Args:
            provider: Identity provider implementation
            invitation_settings: Deletion polling configuration
        """
        self.provider = provider
        self.settings = invitation_settings

    def authorize_url(self, redirect_to: str) -> AuthorizationRequest:
        return self.provider.authorize_url(redirect_to)

    async def complete_login(self, code: str, code_verifier: str) -> ProviderSession:
        """Exchange an OAuth code for a provider session.

        Args:
            code: Authorization code from the OAuth callback
            code_verifier: PKCE verifier issued with the authorization URL

        Returns:
            Provider session including the confirmed identity record
        """
        with logfire.span("identity_service.complete_login"):
            session = await self.provider.exchange_code_for_session(code, code_verifier)
            logfire.info(
                "Provider session established",
                identity_id=str(session.user.id),
                email=session.user.email,
            )
            return session

    async def sign_out(self, access_token: str) -> None:
        with logfire.span("identity_service.sign_out"):
            await self.provider.sign_out(access_token)

    async def find_identity_by_email(self, email: str) -> IdentityRecord | None:
        with logfire.span("identity_service.find_identity_by_email", email=email):
            return await self.provider.find_user_by_email(email)

    async def invite_identity(
        self, email: str, redirect_to: str, data: dict[str, str]
    ) -> IdentityRecord:
        with logfire.span("identity_service.invite_identity", email=email):
            identity = await self.provider.invite_user_by_email(
                email, redirect_to, data
            )
            logfire.info(
                "Provider invitation sent",
                identity_id=str(identity.id),
                email=email,
            )
            return identity

    async def delete_identity(self, identity_id: ProfileId) -> None:
        """Delete an identity record and wait until the provider confirms it.

        Polls the provider instead of sleeping a fixed amount, so a following
        invitation for the same email never collides with the old record.
        Deletion failures are not retried.

        Args:
            identity_id: Identity record to delete

        Raises:
            UpstreamFailureError: If the record is still visible after the
                configured timeout
        """
        with logfire.span(
            "identity_service.delete_identity", identity_id=str(identity_id)
        ):
            await self.provider.delete_user(identity_id)

            deadline = time.monotonic() + self.settings.deletion_poll_timeout
            polls = 0
            while True:
                polls += 1
                if await self.provider.get_user(identity_id) is None:
                    logfire.info(
                        "Identity deletion confirmed",
                        identity_id=str(identity_id),
                        polls=polls,
                    )
                    return
                if time.monotonic() >= deadline:
                    logfire.error(
                        "Identity deletion not confirmed",
                        identity_id=str(identity_id),
                        polls=polls,
                    )
                    raise UpstreamFailureError(
                        f"Identity {identity_id} still present after "
                        f"{self.settings.deletion_poll_timeout}s"
                    )
                await asyncio.sleep(self.settings.deletion_poll_interval)
