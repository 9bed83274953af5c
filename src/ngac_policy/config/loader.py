"""
NGAC Engine Configuration Loader

Reads ngac.yaml, expands ${VAR} / ${VAR:-default} references from the
environment, and turns the result into an EngineConfig. Expansion always
yields strings, so every setting is coerced to its declared type here:

```yaml
engine:
  type_checking: "${NGAC_TYPE_CHECKING:-strict}"   # strict | permissive
  warn_on_unanchored: "${NGAC_WARN_UNANCHORED:-true}"
logging:
  level: "${NGAC_LOG_LEVEL:-INFO}"
```
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .schema import TYPE_CHECKING_MODES, EngineConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "ngac.yaml"

ENV_REF = re.compile(r'\$\{([^}:]+)(?::-([^}]*))?\}')

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


def expand_env(value: Any) -> Any:
    """
    Replace environment references in every string of a parsed YAML tree.

    Raises:
        KeyError: If a reference has no default and the variable is unset
    """
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value

    def lookup(match: "re.Match[str]") -> str:
        name, default = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        if default is None:
            raise KeyError(f"Environment variable '{name}' is not set and has no default")
        return default

    return ENV_REF.sub(lookup, value)


def _as_bool(value: Any, setting: str) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"{setting} must be a boolean, got {value!r}")


def _as_mode(value: Any) -> str:
    mode = str(value).strip().lower()
    if mode not in TYPE_CHECKING_MODES:
        raise ValueError(
            f"engine.type_checking must be one of {', '.join(TYPE_CHECKING_MODES)}, got {value!r}"
        )
    return mode


def parse_config(raw: Mapping[str, Any]) -> EngineConfig:
    """
    Build an EngineConfig from an expanded configuration mapping.

    Raises:
        ValueError: If a setting has an invalid value
    """
    engine = raw.get("engine") or {}
    log_section = raw.get("logging") or {}

    return EngineConfig(
        type_checking=_as_mode(engine.get("type_checking", "strict")),
        warn_on_unanchored=_as_bool(
            engine.get("warn_on_unanchored", True), "engine.warn_on_unanchored"
        ),
        log_level=str(log_section.get("level", "INFO")).strip().upper(),
        metadata=dict(raw.get("metadata") or {}),
    )


def load_config_from_file(config_path: Union[str, Path]) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        KeyError: If a required environment variable is not set
        ValueError: If a setting has an invalid value
        yaml.YAMLError: If YAML is malformed
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    try:
        config = parse_config(expand_env(raw))
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid configuration in {config_path}: {e}")
        raise

    logger.info(
        f"Loaded configuration from {config_path} "
        f"(type_checking={config.type_checking}, warn_on_unanchored={config.warn_on_unanchored})"
    )
    return config


def candidate_paths(working_dir: Optional[Union[str, Path]] = None) -> List[Path]:
    """Locations searched for ngac.yaml, most specific first"""
    roots = [Path(working_dir)] if working_dir else []
    roots.append(Path.cwd())
    return [path for root in roots for path in (root / CONFIG_FILENAME, root / "config" / CONFIG_FILENAME)]


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    working_dir: Optional[Union[str, Path]] = None,
) -> EngineConfig:
    """Load the explicit file, else the first ngac.yaml found, else defaults"""
    if config_path:
        return load_config_from_file(config_path)

    for path in candidate_paths(working_dir):
        if path.exists():
            return load_config_from_file(path)

    logger.info(f"No {CONFIG_FILENAME} found, using default configuration")
    return EngineConfig()
