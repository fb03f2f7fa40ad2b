from typing import Any, Optional

from reqcache.config.loader import ComponentLoader, build_requests_config
from reqcache.config.models import ConfigModel, LoggingConfig, RequestsConfig


class ConfigurationService:
    """Owns the file configuration and builds runtime requests configs from it."""

    def __init__(self, config_path: Optional[str] = None, loader: Optional[ComponentLoader] = None):
        self.config_path = config_path
        self.loader = loader or ComponentLoader()
        self._config = ConfigModel.load(config_path)

    def get_config(self) -> ConfigModel:
        return self._config

    def reload_config(self) -> ConfigModel:
        """Re-read the file; drivers loaded for the previous file are forgotten."""
        self._config = ConfigModel.load(self.config_path)
        self.loader.clear_cache()
        return self._config

    def requests_config(self, **overrides: Any) -> RequestsConfig:
        return build_requests_config(self._config, self.loader, **overrides)


__all__ = ['ComponentLoader', 'ConfigModel', 'ConfigurationService', 'LoggingConfig', 'RequestsConfig', 'build_requests_config']
