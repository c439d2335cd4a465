"""Centralized configuration loading for kubestack.

This module provides utilities for loading and accessing configuration from
kubestack.json with support for environment variable fallbacks and default values.

Example kubestack.json::

    {
      "stack": {"label_key": "kubestack.io/stack"},
      "reconcile": {
        "ignore_fields": [["status"], ["metadata", "resourceVersion"]],
        "prune_kinds": ["ConfigMap"]
      },
      "kubectl": {"path": "kubectl", "context": "staging", "timeout_seconds": 30}
    }
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from kubestack.core.errors import ConfigError

DEFAULT_CONFIG_PATH = "kubestack.json"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to config file (default: "kubestack.json")

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        # Return empty dict on error, allowing code to use defaults
        return {}
    return data if isinstance(data, dict) else {}


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Supports dot-notation keys like ["kubectl", "path"] or ["stack", "label_key"].
    Also checks environment variables as fallback (e.g., KUBECTL_PATH for kubectl.path).

    Args:
        keys: List of keys to traverse (e.g., ["kubectl", "context"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join(k.upper() for k in keys)
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def get_config_list(
    keys: List[str], default: Sequence[Any] = (), config: Optional[Dict[str, Any]] = None
) -> List[Any]:
    """Get a list-valued setting.

    Lists come straight from the config file. A string, typically from an
    environment variable such as RECONCILE_PRUNE_KINDS="ConfigMap,Secret",
    is split on commas.

    Raises:
        ConfigError: If the value is neither a list nor a string
    """
    value = get_config_value(keys, default=None, config=config)
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list):
        return value
    name = ".".join(keys)
    raise ConfigError(f"Config value {name} must be a list, got {type(value).__name__}", key=name)


def parse_field_path(value: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    """Turn a field path setting into key tokens.

    ``"metadata.uid"`` and ``["metadata", "uid"]`` both give
    ``("metadata", "uid")``. Use the list form for keys containing dots.
    """
    if isinstance(value, str):
        tokens = tuple(value.split("."))
    elif isinstance(value, (list, tuple)):
        tokens = tuple(value)
    else:
        tokens = ()
    if not tokens or not all(isinstance(token, str) and token for token in tokens):
        raise ConfigError(f"Invalid field path: {value!r}")
    return tokens
