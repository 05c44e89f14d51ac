"""Hosted identity provider adapter."""

from .client import MockIdentityProviderClient, RealIdentityProviderClient

__all__ = ["MockIdentityProviderClient", "RealIdentityProviderClient"]
