"""Dynamic loading of drivers and interceptors named in configuration."""

import importlib
from typing import Any, Callable, Dict, Optional

from reqcache.config.log import get_logger
from reqcache.config.models import HOOK_EVENTS, ConfigModel, RequestsConfig
from reqcache.exceptions import ConfigurationError

logger = get_logger(__name__)


def _import_attribute(dotted_path: str) -> Any:
    module_name, _, attribute = dotted_path.rpartition('.')
    if not module_name:
        raise ImportError(f"'{dotted_path}' is not a full dotted path")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


class ComponentLoader:
    """Loads driver classes and hook callables by dotted path."""

    def __init__(self):
        self._cache: Dict[str, Any] = {}

    def load_component(self, component_config: Dict[str, Any]) -> Any:
        """Instantiate a class from ``{'class': 'pkg.mod.Class', 'params': {...}}``.

        Instances are cached per class path and params.
        """
        class_path = component_config['class']
        params = component_config.get('params', {})

        cache_key = f'{class_path}:{sorted(params.items())!r}'
        if cache_key in self._cache:
            logger.debug('Using cached component', class_path=class_path)
            return self._cache[cache_key]

        try:
            component_class = _import_attribute(class_path)
            instance = component_class(**params)
        except Exception as e:
            logger.error('Failed to load component', class_path=class_path, error=str(e))
            raise ConfigurationError(f"Cannot load component '{class_path}': {e}") from e

        self._cache[cache_key] = instance
        logger.info('Loaded component', class_path=class_path)
        return instance

    def load_callable(self, dotted_path: str) -> Callable[..., Any]:
        """Resolve a module-level callable such as an interceptor."""
        try:
            target = _import_attribute(dotted_path)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Cannot load callable '{dotted_path}': {e}") from e

        if not callable(target):
            raise ConfigurationError(f"'{dotted_path}' is not callable")
        return target

    def clear_cache(self):
        self._cache.clear()


def build_requests_config(config_model: ConfigModel, loader: Optional[ComponentLoader] = None, **overrides: Any) -> RequestsConfig:
    """Resolve a file configuration into the runtime requests config.

    Keyword overrides win over anything resolved from the file.
    """
    loader = loader or ComponentLoader()

    drivers = {name: loader.load_component(component.to_loader_dict()) for name, component in config_model.drivers.items()}
    if config_model.default_driver:
        drivers['default'] = drivers[config_model.default_driver]

    hooks = {}
    for event in HOOK_EVENTS:
        dotted_path = getattr(config_model.hooks, event)
        if dotted_path:
            hooks[event] = loader.load_callable(dotted_path)

    values: Dict[str, Any] = {
        'driver': drivers or None,
        'take_latest': config_model.take_latest,
        'handle_operations_state': config_model.handle_operations_state,
        **hooks,
    }
    values.update(overrides)
    return RequestsConfig(**values)
