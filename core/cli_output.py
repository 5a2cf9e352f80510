"""CLI output formatting utilities.

Commands print human text by default; ``--output json|yaml`` switches the
same data to a machine-readable rendering.
"""
from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Dict, Optional, TextIO

import yaml


class OutputFormat(str, Enum):
    """Output format options."""
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: OutputFormat = OutputFormat.TEXT
    quiet: bool = False
    file: Optional[TextIO] = None

    @property
    def stream(self) -> TextIO:
        return self.file or sys.stdout


class OutputWriter:
    """Handles formatted output for CLI commands."""

    def __init__(self, config: Optional[OutputConfig] = None):
        self.config = config or OutputConfig()

    @property
    def machine_readable(self) -> bool:
        return self.config.format in (OutputFormat.JSON, OutputFormat.YAML)

    def print(self, *args, **kwargs) -> None:
        """Print to the configured output stream."""
        if self.config.quiet:
            return
        kwargs.setdefault("file", self.config.stream)
        print(*args, **kwargs)

    def print_data(self, data: Any) -> None:
        """Print data in the configured format."""
        fmt = self.config.format
        if fmt == OutputFormat.JSON:
            self.print(json.dumps(_normalize(data), indent=2, ensure_ascii=False, default=str))
        elif fmt == OutputFormat.YAML:
            self.print(yaml.safe_dump(_normalize(data), default_flow_style=False, sort_keys=False, allow_unicode=True), end="")
        elif isinstance(data, dict):
            self.print_dict(data)
        elif is_dataclass(data) and not isinstance(data, type):
            self.print_dict(asdict(data))
        elif isinstance(data, (list, tuple)):
            for item in data:
                self.print(item)
        else:
            self.print(str(data))

    def print_dict(self, data: Dict[str, Any], *, separator: str = ": ", indent: int = 0) -> None:
        prefix = " " * indent
        for key, value in data.items():
            self.print(f"{prefix}{key}{separator}{value}")


def _normalize(data: Any) -> Any:
    """Convert dataclasses and enums into plain JSON/YAML-friendly values."""
    if is_dataclass(data) and not isinstance(data, type):
        return _normalize(asdict(data))
    if isinstance(data, dict):
        return {str(k): _normalize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_normalize(v) for v in data]
    if isinstance(data, Enum):
        return data.value
    return data
