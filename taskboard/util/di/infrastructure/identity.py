"""Identity provider infrastructure providers."""

from dishka import Scope, provide

from taskboard.adapter.identity import RealIdentityProviderClient
from taskboard.config import Settings
from taskboard.domain.service import IdentityProvider
from taskboard.util.di.base import ProviderBase


class IdentityProviderComponent(ProviderBase):
    """Identity component base."""

    __mock_component__ = "identity"


class ProdIdentityProvider(IdentityProviderComponent):
    """Production identity provider backed by the hosted auth server."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_identity_provider(self, settings: Settings) -> IdentityProvider:
        return RealIdentityProviderClient(
            url=settings.identity.url,
            service_role_key=settings.identity.service_role_key,
            oauth_provider=settings.identity.oauth_provider,
            timeout=settings.identity.timeout,
        )
