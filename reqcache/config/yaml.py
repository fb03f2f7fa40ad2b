"""YAML loading for configuration files, with an ``!env`` tag for environment lookups."""

import os
from typing import Any, Optional, Tuple

import yaml

ENV_TAG = '!env'


class EnvSafeLoader(yaml.SafeLoader):
    """``yaml.SafeLoader`` resolving ``!env NAME`` and ``!env [NAME, fallback]`` nodes."""


def _env_reference(loader: EnvSafeLoader, node: yaml.Node) -> Tuple[str, Optional[Any], bool]:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node), None, False

    if isinstance(node, yaml.SequenceNode):
        items = loader.construct_sequence(node)
        if len(items) == 2 and isinstance(items[0], str):
            return items[0], items[1], True

    raise yaml.constructor.ConstructorError(None, None, f'{ENV_TAG} expects NAME or [NAME, fallback]', node.start_mark)


def _construct_env(loader: EnvSafeLoader, node: yaml.Node) -> Any:
    name, fallback, has_fallback = _env_reference(loader, node)
    if name in os.environ:
        return os.environ[name]
    if has_fallback:
        return fallback
    raise ValueError(f"Required environment variable '{name}' is not set")


EnvSafeLoader.add_constructor(ENV_TAG, _construct_env)


def safe_load_with_env(stream: Any) -> Any:
    """``yaml.safe_load`` with ``!env`` support."""
    return yaml.load(stream, Loader=EnvSafeLoader)
