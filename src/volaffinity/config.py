#!/usr/bin/env python3
"""
VOLAFFINITY CONFIGURATION
-------------------------
Settings are layered: built-in defaults, then an optional YAML file,
then VOLAFFINITY_* environment variables. CLI flags are applied last by
the caller.

Author: VolAffinity Team
Date: 2026-10-19
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ruamel.yaml import YAML, YAMLError

from volaffinity.core.ownership import DEFAULT_OWNER_LABEL, DEFAULT_OWNER_VALUE, OwnershipPredicate

logger = logging.getLogger("volaffinity.config")

ENV_PREFIX = "VOLAFFINITY_"

# Field name -> environment variable suffix
ENV_KEYS = {
    "owner_label_key": "OWNER_LABEL",
    "owner_label_value": "OWNER_VALUE",
    "request_timeout": "REQUEST_TIMEOUT",
    "kube_context": "KUBE_CONTEXT",
    "log_level": "LOG_LEVEL",
}


@dataclass(frozen=True)
class ResolverConfig:
    owner_label_key: str = DEFAULT_OWNER_LABEL
    owner_label_value: str = DEFAULT_OWNER_VALUE
    request_timeout: float = 30.0
    kube_context: Optional[str] = None
    log_level: str = "WARNING"

    def ownership(self) -> OwnershipPredicate:
        return OwnershipPredicate(self.owner_label_key, self.owner_label_value)

    def merged(self, overrides: Mapping[str, Any]) -> "ResolverConfig":
        """Returns a copy with every non-None override applied and coerced."""
        known = {f.name for f in fields(self)}
        values: Dict[str, Any] = {}
        for key, raw in overrides.items():
            if key not in known:
                logger.warning(f"Ignoring unknown configuration key '{key}'")
                continue
            if raw is None:
                continue
            values[key] = _coerce(key, raw)
        return replace(self, **values)


def _coerce(key: str, raw: Any) -> Any:
    if key == "request_timeout":
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for '{key}': {raw!r}")
        if value <= 0:
            raise ValueError(f"'{key}' must be positive, got {value}")
        return value
    if key == "log_level":
        level = str(raw).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid value for '{key}': {raw!r}")
        return level
    return str(raw)


def load_config(path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None) -> ResolverConfig:
    """
    Builds the effective configuration.

    Args:
        path: Optional YAML file whose top-level keys match ResolverConfig fields.
        environ: Environment mapping (defaults to os.environ).
    """
    cfg = ResolverConfig()

    if path:
        config_path = Path(path)
        try:
            data = YAML(typ='safe').load(config_path.read_text(encoding='utf-8'))
        except (OSError, YAMLError) as e:
            raise ValueError(f"Unable to load config file '{path}': {e}") from e
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file '{path}' must contain a mapping")
        cfg = cfg.merged(data or {})

    environ = os.environ if environ is None else environ
    env_values = {
        name: environ[ENV_PREFIX + suffix]
        for name, suffix in ENV_KEYS.items()
        if ENV_PREFIX + suffix in environ
    }
    return cfg.merged(env_values)
