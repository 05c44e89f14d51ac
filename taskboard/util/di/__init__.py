"""Dependency injection module.

``PROVIDERS`` lists one entry per layer. Mockable components appear as their
abstract base; ``select_providers`` resolves each base to the production or
the mock implementation.
"""

from collections.abc import Collection
from typing import Type

from taskboard.util.di.application import ProdApplicationProvider
from taskboard.util.di.base import COMPONENTS, Component, ProviderBase
from taskboard.util.di.core import ProdConfigProvider
from taskboard.util.di.domain import ProdDomainProvider
from taskboard.util.di.infrastructure import (
    IdentityProviderComponent,
    PersistenceProvider,
    ProdIdentityProvider,
    ProdPersistenceProvider,
)
from taskboard.util.error import DependencyInjectionError

PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdDomainProvider,
    ProdApplicationProvider,
    IdentityProviderComponent,
    PersistenceProvider,
]


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve a ``PROVIDERS`` entry to the class to instantiate.

    Raises:
        DependencyInjectionError: If a mockable component has no
            implementation of the requested kind (mocks live under tests/di
            and are only registered once that package is imported)
    """
    if base.__mock_component__ is None:
        return base

    impl = next(
        (c for c in base.__subclasses__() if c.__is_mock__ == use_mock),
        None,
    )
    if impl is None:
        kind = "mock" if use_mock else "production"
        raise DependencyInjectionError(
            f"No {kind} implementation for {base.__mock_component__}"
        )
    return impl


def select_providers(mocked: Collection[Component] = ()) -> list[ProviderBase]:
    """Instantiate one provider per ``PROVIDERS`` entry.

    Args:
        mocked: Components to serve from their mock implementation

    Raises:
        DependencyInjectionError: If ``mocked`` names an unknown component
    """
    unknown = set(mocked) - COMPONENTS
    if unknown:
        raise DependencyInjectionError(f"Unknown components: {sorted(unknown)}")

    return [
        get_provider(base, use_mock=base.__mock_component__ in mocked)()
        for base in PROVIDERS
    ]


__all__ = [
    "COMPONENTS",
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "get_provider",
    "select_providers",
    "ProdConfigProvider",
    "ProdDomainProvider",
    "ProdApplicationProvider",
    "IdentityProviderComponent",
    "PersistenceProvider",
    "ProdIdentityProvider",
    "ProdPersistenceProvider",
]
