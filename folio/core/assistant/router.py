from typing import Optional

import folio.core.assistant.providers  # noqa: F401
from folio.config.models import AssistantConfig
from folio.core.contracts.assistant import Assistant
from folio.core.registry import assistant_registry
from folio.utils.errors import AssistantError, FolioException


def get_assistant(config: AssistantConfig, api_key: Optional[str] = None) -> Assistant:
    """
    Factory function to get an assistant backend based on the config.

    Raises:
        AssistantError: If the backend is not found or fails to be created.
    """
    try:
        return assistant_registry.create(config.provider, config=config, api_key=api_key)
    except KeyError:
        available = list(assistant_registry.keys())
        raise AssistantError(
            f"Unknown assistant provider '{config.provider}'. "
            f"Available providers: {available}"
        )
    except FolioException:
        raise
    except Exception as e:
        raise AssistantError(f"Failed to create assistant '{config.provider}': {e}") from e
