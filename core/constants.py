"""Shared constants used across the assistant modules.

Defaults for the Work IQ CLI integration live here so the client, the
cache, the verifier and the CLI agree on them.
"""

from __future__ import annotations

import os

# -----------------------------------------------------------------------------
# External tool
# -----------------------------------------------------------------------------

DEFAULT_TOOL = "workiq"
INSTALL_HINT = "Install with: npm install -g @microsoft/workiq"
EULA_HINT = "Run: workiq accept-eula"

# Output larger than this is rejected rather than cached
MAX_OUTPUT_BYTES = 1024 * 1024

DEFAULT_TIMEOUT_MS = 30_000
AUTH_PROBE_TIMEOUT_MS = 10_000

# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------

DEFAULT_CACHE_TTL = 3600
DEFAULT_CACHE_DIR = os.path.join(".cache", "workiq")

# -----------------------------------------------------------------------------
# Environment variable names
# -----------------------------------------------------------------------------

ENV_TENANT = "WORKIQ_TENANT_ID"
ENV_TOOL = "WORKIQ_CLI"
ENV_CONFIG = "WORKIQ_CONFIG"
ENV_CACHE_DIR = "WORKIQ_CACHE_DIR"
ENV_CACHE_TTL = "WORKIQ_CACHE_TTL"
ENV_TIMEOUT_MS = "WORKIQ_TIMEOUT_MS"
ENV_OUTPUT_DIR = "WORKIQ_OUTPUT_DIR"
ENV_DEBUG = "ENABLE_DEBUG_LOGGING"

# -----------------------------------------------------------------------------
# Files and output
# -----------------------------------------------------------------------------

DEFAULT_ENV_FILE = ".env"
DEFAULT_OUTPUT_DIR = "output"
MEETING_BRIEFS_SUBDIR = "meeting-briefs"

# Placeholder prefix used by .env.example values
ENV_PLACEHOLDER_PREFIX = "your-"
REQUIRED_ENV_KEYS = (ENV_TENANT,)

MIN_PYTHON = (3, 9)


def default_config_path() -> str:
    """Return the YAML config path used when none is given explicitly."""
    env_cfg = os.environ.get(ENV_CONFIG)
    if env_cfg:
        return os.path.expanduser(env_cfg)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    root = os.path.expanduser(xdg) if xdg else os.path.expanduser("~/.config")
    return os.path.join(root, "workiq", "config.yaml")
