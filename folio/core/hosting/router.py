import folio.core.hosting.github  # noqa: F401
from folio.config.models import HostingConfig, SessionCredentials
from folio.core.contracts.hosting import HostingBackend
from folio.core.registry import hosting_registry
from folio.utils.errors import HostingError


def get_hosting(config: HostingConfig, credentials: SessionCredentials) -> HostingBackend:
    """
    Factory function to get the hosting backend for the configured provider.

    Raises:
        HostingError: If the provider is not registered.
    """
    try:
        return hosting_registry.create(
            config.provider,
            config=config,
            token=credentials.hosting_token,
            owner=credentials.repo_owner,
            repo=credentials.repo_name,
        )
    except KeyError:
        available = list(hosting_registry.keys())
        raise HostingError(
            f"Unknown hosting provider '{config.provider}'. "
            f"Available providers: {available}"
        )
