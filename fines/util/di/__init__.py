"""Dependency injection module.

Persistence and realtime are swappable components: each has a production
provider and a mock one, found through ``__subclasses__()``. Config, domain
and application providers are concrete and always used as-is.
"""

from typing import Type

from fines.util.di.application import ProdApplicationProvider
from fines.util.di.base import Component, ProviderBase
from fines.util.di.core import ProdConfigProvider
from fines.util.di.domain import ProdDomainProvider
from fines.util.di.infrastructure import (
    PersistenceProvider,
    ProdPersistenceProvider,
    ProdRealtimeProvider,
    RealtimeProvider,
)

PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdDomainProvider,
    ProdApplicationProvider,
    PersistenceProvider,
    RealtimeProvider,
]


def components() -> set[Component]:
    """Names of every swappable component."""
    return {
        base.__mock_component__
        for base in PROVIDERS
        if base.__mock_component__ is not None
    }


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Pick the implementation of ``base``.

    Raises:
        ValueError: If the component has no implementation of that kind
    """
    implementations = base.__subclasses__()
    if not implementations:
        return base

    for impl in implementations:
        if impl.__is_mock__ == use_mock:
            return impl

    kind = "mock" if use_mock else "production"
    raise ValueError(f"No {kind} implementation for {base.__mock_component__}")


def build_providers(real: set[Component]) -> list[ProviderBase]:
    """Instantiate providers, using production implementations for ``real``.

    Components outside ``real`` get their mock implementation.

    Raises:
        ValueError: If ``real`` names an unknown component, or a component
            whose dependencies are mocked
    """
    unknown = real - components()
    if unknown:
        raise ValueError(f"Unknown components: {unknown}")

    instances = []
    for base in PROVIDERS:
        component = base.__mock_component__
        if component is None:
            instances.append(get_provider(base)())
            continue
        if component in real:
            missing = base.__depends_on__ - real
            if missing:
                raise ValueError(
                    f"Component '{component}' requires {missing} to be unmocked"
                )
        instances.append(get_provider(base, use_mock=component not in real)())
    return instances


__all__ = [
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "build_providers",
    "components",
    "get_provider",
    "ProdConfigProvider",
    "ProdDomainProvider",
    "ProdApplicationProvider",
    "PersistenceProvider",
    "RealtimeProvider",
    "ProdPersistenceProvider",
    "ProdRealtimeProvider",
]
