import os
import stat
from pathlib import Path

import yaml

from folio.config.models import SessionCredentials
from folio.utils.errors import ConfigError
from folio.utils.logger import logger

# Environment fallbacks for the two secrets.
ENV_FALLBACKS = {
    "hosting_token": "GITHUB_TOKEN",
    "assistant_key": "OPENAI_API_KEY",
}


class SettingsStore:
    """
    Persists the session credentials in a small YAML file.

    The file is read at startup and again before every remote call, and
    written only on an explicit save.
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read settings file {self.path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {self.path} must contain a mapping.")
        return data

    def load(self) -> SessionCredentials:
        data = self._read()
        values = {}
        for field in SessionCredentials.model_fields:
            value = data.get(field)
            if not value and field in ENV_FALLBACKS:
                value = os.getenv(ENV_FALLBACKS[field])
            values[field] = str(value).strip() if value else None
        return SessionCredentials(**values)

    def save(self, credentials: SessionCredentials) -> SessionCredentials:
        """
        Writes the non-empty values of `credentials` over the stored ones.

        Returns:
            The credentials as stored after the save.
        """
        data = self._read()
        for field, value in credentials.model_dump().items():
            if value and value.strip():
                data[field] = value.strip()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
            os.chmod(self.path, stat.S_IRUSR | stat.S_IWUSR)
        except OSError as e:
            raise ConfigError(f"Could not write settings file {self.path}: {e}") from e

        logger.info(f"Saved settings to {self.path}")
        return SessionCredentials(**{k: data.get(k) for k in SessionCredentials.model_fields})

    def describe(self) -> dict:
        """Which credentials are currently available, without revealing them."""
        creds = self.load()
        return {field: bool(value) for field, value in creds.model_dump().items()}
