"""Configuration models: the YAML file model and the runtime requests config."""

from typing import Any, Callable, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from reqcache.actions import is_request_action
from reqcache.classification import is_request_read_only
from reqcache.config.yaml import safe_load_with_env

HOOK_EVENTS = ('on_request', 'on_success', 'on_error', 'on_abort')


class LoggingConfig(BaseModel):
    """Where and how verbosely request orchestration logs."""

    level: str = Field(default='INFO', description='Minimum level of emitted events')
    console_enabled: bool = Field(default=True, description='Render events to stderr')
    file_enabled: bool = Field(default=False, description='Enable JSON file logging')
    log_file_dir: Optional[str] = Field(default=None, description='Log directory, required when file logging is enabled')
    max_file_size: str = Field(default='10MB', description='Size at which the log file rotates, e.g. "10MB"')
    backup_count: int = Field(default=4, description='Rotated files kept')

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.upper() not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
            raise ValueError(f"Invalid log level '{v}'")
        return v.upper()


class ComponentConfig(BaseModel):
    """A class loaded by dotted path, instantiated with params."""

    model_config = ConfigDict(populate_by_name=True)

    class_path: str = Field(alias='class', description='Full class path like "my_module.MyDriver"')
    params: dict = Field(default_factory=dict, description='Parameters passed to the constructor')

    def to_loader_dict(self) -> Dict[str, Any]:
        return {'class': self.class_path, 'params': self.params}


class HooksConfig(BaseModel):
    """Global interceptors given as dotted paths to callables."""

    on_request: Optional[str] = None
    on_success: Optional[str] = None
    on_error: Optional[str] = None
    on_abort: Optional[str] = None


class ConfigModel(BaseModel):
    """File-level configuration with validation."""

    model_config = ConfigDict(extra='allow')

    version: str = Field(default='1', description='Config file format version')
    take_latest: Optional[bool] = Field(default=None, description='Cancel previous calls of the same key; unset means queries only')
    handle_operations_state: bool = Field(default=False, description='Keep last response data in mutation state')
    drivers: Dict[str, ComponentConfig] = Field(default_factory=dict, description='Named drivers')
    default_driver: Optional[str] = Field(default=None, description='Driver used when an action names none')
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description='Logging output')

    @model_validator(mode='after')
    def _check_default_driver(self) -> 'ConfigModel':
        if self.default_driver is not None and self.default_driver not in self.drivers:
            raise ValueError(f"default_driver '{self.default_driver}' is not one of the configured drivers {list(self.drivers)}")
        return self

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> 'ConfigModel':
        """Load configuration from a YAML file, falling back to defaults when it does not exist."""
        data: Dict[str, Any] = {}
        if config_path:
            try:
                with open(config_path, 'r') as f:
                    data = safe_load_with_env(f) or {}
            except FileNotFoundError:
                data = {}
            except yaml.YAMLError as e:
                raise ValueError(f'Invalid YAML in config file {config_path}: {e}')

        if not isinstance(data, dict):
            raise ValueError(f'Config file {config_path} must contain a mapping')
        return cls(**data)

    def save(self, config_path: str) -> None:
        """Save configuration to a YAML file."""
        with open(config_path, 'w') as f:
            yaml.dump(self.model_dump(by_alias=True), f, default_flow_style=False, sort_keys=False, indent=2)


class RequestsConfig(BaseModel):
    """Runtime configuration shared by the orchestrator and the network reducer."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    driver: Any = Field(default=None, description='A driver, or a mapping of names to drivers with a "default" entry')
    take_latest: Union[bool, Callable[..., bool], None] = None
    is_request_action: Callable[..., bool] = is_request_action
    is_request_read_only: Callable[..., bool] = is_request_read_only
    on_request: Optional[Callable[..., Any]] = None
    on_success: Optional[Callable[..., Any]] = None
    on_error: Optional[Callable[..., Any]] = None
    on_abort: Optional[Callable[..., Any]] = None
    handle_operations_state: bool = False

    # Query sub-reducer defaults, overridable per action meta
    multiple: bool = False
    get_default_data: Optional[Callable[..., Any]] = None

    def resolve_take_latest(self, action: Any) -> bool:
        """Effective take_latest: action meta, then config callable, then config constant."""
        meta = action.meta or {}
        if meta.get('take_latest') is not None:
            return bool(meta['take_latest'])
        if callable(self.take_latest):
            return bool(self.take_latest(action))
        if self.take_latest is None:
            return bool(self.is_request_read_only(action))
        return self.take_latest

    def hook(self, event: str) -> Optional[Callable[..., Any]]:
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown interceptor event '{event}'")
        return getattr(self, event)
