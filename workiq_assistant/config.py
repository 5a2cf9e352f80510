"""Settings for the Work IQ assistant.

Resolution order, highest first: explicit overrides (CLI flags), the process
environment, a ``.env`` file, the YAML config file, built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from core.cli_errors import ConfigError
from core.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_CACHE_TTL,
    DEFAULT_ENV_FILE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_TOOL,
    ENV_CACHE_DIR,
    ENV_CACHE_TTL,
    ENV_OUTPUT_DIR,
    ENV_TENANT,
    ENV_TIMEOUT_MS,
    ENV_TOOL,
    default_config_path,
)
from core.yamlio import load_config

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkIQSettings:
    tool: str = DEFAULT_TOOL
    tenant_id: Optional[str] = None
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_enabled: bool = True
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    output_dir: str = DEFAULT_OUTPUT_DIR
    concurrency: int = 1
    smtp_host: Optional[str] = None
    smtp_port: int = 465
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None

    def redacted(self) -> Dict[str, Any]:
        """Settings as a dict with the SMTP password masked."""
        data = asdict(self)
        if data.get("smtp_pass"):
            data["smtp_pass"] = "********"
        return data


# Environment variable for each settings field
ENV_KEYS: Dict[str, str] = {
    "tool": ENV_TOOL,
    "tenant_id": ENV_TENANT,
    "cache_dir": ENV_CACHE_DIR,
    "cache_ttl": ENV_CACHE_TTL,
    "cache_enabled": "WORKIQ_CACHE_ENABLED",
    "timeout_ms": ENV_TIMEOUT_MS,
    "output_dir": ENV_OUTPUT_DIR,
    "concurrency": "WORKIQ_CONCURRENCY",
    "smtp_host": "SMTP_HOST",
    "smtp_port": "SMTP_PORT",
    "smtp_user": "SMTP_USER",
    "smtp_pass": "SMTP_PASS",
}

# Alternate YAML spellings
YAML_ALIASES = {"cli": "tool", "tenant": "tenant_id", "ttl": "cache_ttl", "timeout": "timeout_ms"}

_INT_FIELDS = {"cache_ttl", "timeout_ms", "concurrency", "smtp_port"}
_BOOL_FIELDS = {"cache_enabled"}
_FIELD_NAMES = {f.name for f in fields(WorkIQSettings)}


def _coerce(name: str, value: Any, source: str) -> Any:
    if name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{name} must be an integer (got {value!r} from {source})") from exc
    if name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    return str(value)


def _from_yaml(data: Mapping[str, Any], source: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        name = YAML_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            LOG.warning("ignoring unknown config key %r in %s", key, source)
            continue
        if value is None:
            continue
        out[name] = _coerce(name, value, source)
    return out


def _from_env(env: Mapping[str, Optional[str]], source: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, var in ENV_KEYS.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        out[name] = _coerce(name, value, source)
    return out


def load_settings(
    config_path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = DEFAULT_ENV_FILE,
    overrides: Optional[Mapping[str, Any]] = None,
) -> WorkIQSettings:
    """Resolve settings from every configuration source.

    Args:
        config_path: YAML file; defaults to $WORKIQ_CONFIG or ~/.config/workiq/config.yaml.
        environ: Environment mapping (defaults to os.environ).
        env_file: Path of a dotenv file to read, or None to skip it.
        overrides: Explicit values (e.g. from CLI flags); None values are ignored.
    """
    environ = os.environ if environ is None else environ
    path = config_path or default_config_path()

    values: Dict[str, Any] = {}
    values.update(_from_yaml(load_config(path), path))
    if env_file and os.path.isfile(env_file):
        values.update(_from_env(dotenv_values(env_file), env_file))
    values.update(_from_env(environ, "environment"))
    for name, value in (overrides or {}).items():
        if value is not None:
            values[name] = _coerce(name, value, "arguments")

    settings = WorkIQSettings(**values)
    if settings.concurrency < 1:
        settings = replace(settings, concurrency=1)
    LOG.debug("settings resolved (config=%s, tenant=%s)", path, settings.tenant_id or "-")
    return settings
