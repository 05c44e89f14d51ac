"""Identity provider client for a hosted GoTrue-style auth server.

End users sign in through the provider's OAuth flow (PKCE). The service role
key gives this backend admin access for invitations, user lookup and deletion.
"""

from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode
from uuid import UUID, uuid4

import httpx
import logfire

from taskboard.adapter.error import IdentityProviderError
from taskboard.domain.service.identity_service import IdentityProvider
from taskboard.domain.value import (
    AuthorizationRequest,
    IdentityRecord,
    ProfileId,
    ProviderSession,
)

from .pkce import generate_pkce_pair


class RealIdentityProviderClient(IdentityProvider):
    """Client for the provider's REST API."""

    # Page size used when scanning users by email
    PAGE_SIZE = 200

    def __init__(
        self,
        url: str,
        service_role_key: str,
        oauth_provider: str = "google",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize identity provider client.

        Args:
            url: Base URL of the hosted project
            service_role_key: Admin key, sent as apikey and bearer token
            oauth_provider: OAuth provider used for end-user sign-in
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.service_role_key = service_role_key
        self.oauth_provider = oauth_provider
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"apikey": self.service_role_key},
        )

    @property
    def _admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.service_role_key}"}

    def authorize_url(self, redirect_to: str) -> AuthorizationRequest:
        verifier, challenge = generate_pkce_pair()
        params = {
            "provider": self.oauth_provider,
            "redirect_to": redirect_to,
            "code_challenge": challenge,
            "code_challenge_method": "s256",
        }
        logfire.info(
            "OAuth authorization initiated",
            provider=self.oauth_provider,
            redirect_to=redirect_to,
        )
        return AuthorizationRequest(
            url=f"{self.base_url}/authorize?{urlencode(params)}",
            code_verifier=verifier,
        )

    async def exchange_code_for_session(
        self, code: str, code_verifier: str
    ) -> ProviderSession:
        """Exchange an authorization code for a session.

        Raises:
            IdentityProviderError: If the provider rejects the code
        """
        data = await self._request(
            "POST",
            "/token",
            operation="exchange_code",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier},
        )
        user = data.get("user")
        if not data.get("access_token") or not user:
            raise IdentityProviderError("Code exchange returned no session")
        return ProviderSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            user=self._to_identity(user),
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request(
            "POST",
            "/logout",
            operation="sign_out",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def get_user(self, user_id: ProfileId) -> IdentityRecord | None:
        data = await self._request(
            "GET",
            f"/admin/users/{user_id}",
            operation="get_user",
            headers=self._admin_headers,
            allow_not_found=True,
        )
        if data is None:
            return None
        return self._to_identity(data)

    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        """Scan the admin user list for an email.

        The admin API has no email filter, so pages are read until a match or
        a short page.
        """
        wanted = email.strip().lower()
        page = 1
        while True:
            data = await self._request(
                "GET",
                "/admin/users",
                operation="list_users",
                headers=self._admin_headers,
                params={"page": page, "per_page": self.PAGE_SIZE},
            )
            users = data.get("users", []) if data else []
            for user in users:
                if (user.get("email") or "").lower() == wanted:
                    return self._to_identity(user)
            if len(users) < self.PAGE_SIZE:
                return None
            page += 1

    async def invite_user_by_email(
        self, email: str, redirect_to: str, data: dict[str, str]
    ) -> IdentityRecord:
        """Invite an email through the provider, which sends the email.

        Raises:
            IdentityProviderError: If the provider refuses the invitation
        """
        user = await self._request(
            "POST",
            "/invite",
            operation="invite_user",
            headers=self._admin_headers,
            params={"redirect_to": redirect_to},
            json={"email": email, "data": data},
        )
        if not user or not user.get("id"):
            raise IdentityProviderError("Invite returned no user")
        return self._to_identity(user)

    async def delete_user(self, user_id: ProfileId) -> None:
        await self._request(
            "DELETE",
            f"/admin/users/{user_id}",
            operation="delete_user",
            headers=self._admin_headers,
        )
        logfire.info("Identity deletion requested", identity_id=str(user_id))

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> dict | None:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logfire.error(
                "Identity provider HTTP error", operation=operation, error=str(e)
            )
            raise IdentityProviderError(f"HTTP error during {operation}: {e}")

        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code >= 400:
            logfire.error(
                "Identity provider request failed",
                operation=operation,
                status_code=response.status_code,
                error=response.text,
            )
            raise IdentityProviderError(
                f"{operation} failed: {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _to_identity(user: dict) -> IdentityRecord:
        return IdentityRecord(
            id=ProfileId(UUID(user["id"])),
            email=user.get("email"),
            confirmed_at=user.get("email_confirmed_at") or user.get("confirmed_at"),
            last_sign_in_at=user.get("last_sign_in_at"),
        )


class MockIdentityProviderClient(IdentityProvider):
    """In-memory identity provider for testing.

    Holds users in a dict. ``deletion_lag`` keeps a deleted user visible for
    that many further ``get_user`` calls. ``fail_deletes`` and
    ``fail_invites`` make every delete or invite raise. Invites sent are
    recorded in ``sent_invites``.
    """

    def __init__(self) -> None:
        self.users: dict[ProfileId, IdentityRecord] = {}
        self.codes: dict[str, ProfileId] = {}
        self.signed_out: list[str] = []
        self.deletion_lag = 0
        self.fail_deletes = False
        self.fail_invites = False
        self.sent_invites: list[tuple[str, str, dict[str, str]]] = []
        self._pending_deletes: dict[ProfileId, int] = {}

    def add_user(
        self,
        email: str,
        confirmed_at: datetime | None = None,
        user_id: ProfileId | None = None,
    ) -> IdentityRecord:
        """Register a user and return its record."""
        record = IdentityRecord(
            id=user_id or ProfileId(uuid4()),
            email=email.lower(),
            confirmed_at=confirmed_at,
        )
        self.users[record.id] = record
        return record

    def confirm_user(self, user_id: ProfileId) -> IdentityRecord:
        """Mark a user confirmed, as the provider does on first sign-in."""
        now = datetime.now(timezone.utc)
        record = self.users[user_id].model_copy(
            update={"confirmed_at": now, "last_sign_in_at": now}
        )
        self.users[user_id] = record
        return record

    def issue_code(self, user_id: ProfileId) -> str:
        """Create an authorization code that signs in the given user."""
        code = f"code-{uuid4().hex}"
        self.codes[code] = user_id
        return code

    def authorize_url(self, redirect_to: str) -> AuthorizationRequest:
        query = urlencode({"redirect_to": redirect_to})
        return AuthorizationRequest(
            url=f"https://identity.test/authorize?{query}",
            code_verifier="mock-verifier",
        )

    async def exchange_code_for_session(
        self, code: str, code_verifier: str
    ) -> ProviderSession:
        user_id = self.codes.pop(code, None)
        if user_id is None or user_id not in self.users:
            raise IdentityProviderError("Invalid authorization code", status_code=400)
        return ProviderSession(
            access_token=f"access-{user_id}",
            refresh_token=None,
            user=self.users[user_id],
        )

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    async def get_user(self, user_id: ProfileId) -> IdentityRecord | None:
        if user_id in self._pending_deletes:
            remaining = self._pending_deletes[user_id]
            if remaining <= 0:
                del self._pending_deletes[user_id]
                self.users.pop(user_id, None)
            else:
                self._pending_deletes[user_id] = remaining - 1
        return self.users.get(user_id)

    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        wanted = email.strip().lower()
        for user in self.users.values():
            if user.email == wanted and user.id not in self._pending_deletes:
                return user
        return None

    async def invite_user_by_email(
        self, email: str, redirect_to: str, data: dict[str, str]
    ) -> IdentityRecord:
        if self.fail_invites:
            raise IdentityProviderError("invite_user failed: 500", status_code=500)
        self.sent_invites.append((email, redirect_to, data))
        existing = await self.find_user_by_email(email)
        if existing is not None:
            if existing.is_confirmed:
                raise IdentityProviderError(
                    "A user with this email address has already been registered",
                    status_code=422,
                )
            return existing
        return self.add_user(email)

    async def delete_user(self, user_id: ProfileId) -> None:
        if self.fail_deletes:
            raise IdentityProviderError("delete_user failed: 500", status_code=500)
        if self.deletion_lag > 0:
            self._pending_deletes[user_id] = self.deletion_lag
        else:
            self.users.pop(user_id, None)
