"""
Configuration

Settings are resolved once, in order of precedence:
command-line overrides > MWARCHIVE_* environment variables > MWARCHIVER_*
environment variables > YAML config file > defaults. The resulting
ArchiveConfig is passed explicitly to every component that needs it.
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from mwarchive.core.errors import ConfigError
from mwarchive.utils.validators import validate_api_url


ENV_PREFIX = "MWARCHIVE_"
DEFAULT_CONFIG_NAME = ".mwarchive.yaml"
# Names read by earlier mwarchiver deployments
LEGACY_ENV_PREFIX = "MWARCHIVER_"
LEGACY_CONFIG_NAME = ".mwarchiver.yaml"
BACKENDS = ("sqlite", "files")

logger = logging.getLogger(__name__)


@dataclass
class ArchiveConfig:
    api_url: str = "https://en.wikipedia.org/w/api.php"
    user_agent: str = "mwarchive 1.0"
    backend: str = "sqlite"
    db_path: str = "mwarchive.db"
    output_path: str = ""
    namespaces: List[int] = field(default_factory=lambda: [0])
    limit: int = 100  # <= 0 = no cap
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    request_delay: float = 0.0

    @property
    def storage_path(self) -> str:
        """Database file or output directory, depending on the backend."""
        if self.backend == "sqlite":
            return self.db_path or self.output_path
        return self.output_path

    def validate(self) -> "ArchiveConfig":
        ok, _, err = validate_api_url(self.api_url)
        if not ok:
            raise ConfigError(f"invalid api_url {self.api_url!r}: {err}")
        if self.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {', '.join(BACKENDS)}, got {self.backend!r}")
        if not self.storage_path:
            if self.backend == "files":
                raise ConfigError("output_path is required for the files backend")
            raise ConfigError("db_path is required for the sqlite backend")
        if not self.namespaces:
            raise ConfigError("at least one namespace is required")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.max_retries < 0:
            raise ConfigError("max_retries cannot be negative")
        return self


def _field_types() -> Dict[str, Any]:
    return {f.name: f.type for f in fields(ArchiveConfig)}


def parse_namespaces(value: Any) -> List[int]:
    """Accept a list of ints or a comma-separated string such as "0, 4,14"."""
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
        items: List[Any] = [p for p in parts if p]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, int) and not isinstance(value, bool):
        items = [value]
    else:
        raise ConfigError(f"invalid namespaces value: {value!r}")

    try:
        return [int(item) for item in items]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid namespaces value {value!r}: {e}") from e


def _coerce(name: str, value: Any) -> Any:
    if name == "namespaces":
        return parse_namespaces(value)

    kind = _field_types()[name]
    try:
        if kind in (int, "int"):
            if isinstance(value, bool):
                raise ValueError("boolean is not an integer")
            return int(value)
        if kind in (float, "float"):
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {name}: {value!r}") from e
    return "" if value is None else str(value)


def _apply(config: ArchiveConfig, values: Mapping[str, Any], source: str) -> ArchiveConfig:
    known = _field_types()
    updates = {}
    for key, value in values.items():
        if key not in known:
            raise ConfigError(f"unknown config key {key!r} in {source}")
        updates[key] = _coerce(key, value)
    return replace(config, **updates)


def default_config_path() -> Path:
    """~/.mwarchive.yaml, or ~/.mwarchiver.yaml when only that one exists."""
    try:
        home = Path.home()
    except RuntimeError as e:
        raise ConfigError(f"cannot resolve home directory: {e}") from e
    path = home / DEFAULT_CONFIG_NAME
    legacy = home / LEGACY_CONFIG_NAME
    if not path.is_file() and legacy.is_file():
        return legacy
    return path


def read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def env_values(environ: Mapping[str, str]) -> Dict[str, str]:
    values = {}
    # MWARCHIVE_* wins over MWARCHIVER_* for the same key
    for prefix in (LEGACY_ENV_PREFIX, ENV_PREFIX):
        for name in _field_types():
            raw = environ.get(prefix + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
    return values


def load_config(config_file: Optional[str] = None,
                overrides: Optional[Mapping[str, Any]] = None,
                environ: Optional[Mapping[str, str]] = None) -> ArchiveConfig:
    """
    Resolve the effective configuration.

    Args:
        config_file: Explicit YAML file; must exist when given
        overrides: Values from the command line (None entries are ignored)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated ArchiveConfig

    Raises:
        ConfigError: Unreadable file, bad value or failed validation
    """
    environ = os.environ if environ is None else environ
    config = ArchiveConfig()

    if config_file:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
    else:
        path = default_config_path()

    if path.is_file():
        config = _apply(config, read_config_file(path), str(path))
        logger.info(f"Using config file: {path}")

    config = _apply(config, env_values(environ), "environment")

    if overrides:
        config = _apply(config, {k: v for k, v in overrides.items() if v is not None}, "command line")

    return config.validate()
