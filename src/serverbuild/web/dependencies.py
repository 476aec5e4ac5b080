"""FastAPI dependency injection for configuration services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from serverbuild.application.factory import ServiceFactory, get_factory
from serverbuild.application.service import ConfigurationService


@lru_cache(maxsize=1)
def get_service_factory() -> ServiceFactory:
    """Get cached ServiceFactory instance."""
    return get_factory()


def get_configuration_service(
    factory: Annotated[ServiceFactory, Depends(get_service_factory)],
) -> ConfigurationService:
    """Dependency for ConfigurationService."""
    return factory.get_configuration_service()


# Type aliases for cleaner endpoint signatures
ServiceFactoryDep = Annotated[ServiceFactory, Depends(get_service_factory)]
ConfigurationServiceDep = Annotated[ConfigurationService, Depends(get_configuration_service)]
