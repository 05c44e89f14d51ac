"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from taskboard.config import AuthSettings, InvitationSettings, Settings
from taskboard.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Config provider. Settings are loaded from the environment and .env."""

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        return Settings()

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        return settings.auth

    @provide(scope=Scope.APP)
    def provide_invitation_settings(self, settings: Settings) -> InvitationSettings:
        return settings.invitations
