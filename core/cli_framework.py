"""CLI application framework for assistant modules.

Provides a declarative way to build CLI applications with:
- Command registration via decorators
- Nested command groups (e.g. "cache stats")
- Common arguments shared by every command (--tenant, --config, --no-cache, ...)
- Consistent error handling and logging setup
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cli_errors import ExitCode, handle_error
from .cli_output import OutputConfig, OutputFormat, OutputWriter
from .constants import ENV_DEBUG

CommandFunc = Callable[[argparse.Namespace], int]

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Route log records to stderr; DEBUG with --verbose or ENABLE_DEBUG_LOGGING=true."""
    debug = verbose or os.environ.get(ENV_DEBUG, "").strip().lower() == "true"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@dataclass
class Argument:
    """Definition of a CLI argument."""
    name_or_flags: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandDef:
    """Definition of a CLI command."""
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)
    parent: Optional[str] = None  # For nested commands like "cache stats"


class CLIApp:
    """Base class for CLI applications.

    Example usage:
        app = CLIApp("workiq-assistant", "Work IQ helper")

        @app.command("ask", help="Ask one question")
        @app.argument("question")
        def cmd_ask(args):
            print(args.question)
            return 0

        if __name__ == "__main__":
            app.main()
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        version: Optional[str] = None,
        epilog: Optional[str] = None,
        add_common_args: bool = True,
    ):
        self.name = name
        self.description = description
        self.version = version
        self.epilog = epilog
        self.add_common_args = add_common_args

        self._commands: Dict[str, CommandDef] = {}
        self._groups: Dict[str, "CommandGroup"] = {}
        self._pending_arguments: List[Argument] = []

    def command(
        self,
        name: str,
        *,
        help: str = "",
        description: str = "",
    ) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to register a top-level command."""
        def decorator(func: CommandFunc) -> CommandFunc:
            # Collect any pending arguments from @argument decorators
            arguments = list(reversed(self._pending_arguments))
            self._pending_arguments.clear()
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to add an argument to the next command.

        Must be used BEFORE the @command decorator (decorators apply bottom-up).
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            self._pending_arguments.append(Argument(name_or_flags, kwargs))
            return func
        return decorator

    def group(self, name: str, *, help: str = "", description: str = "") -> "CommandGroup":
        """Create a command group for nested commands."""
        group = CommandGroup(self, name, help=help, description=description)
        self._groups[name] = group
        return group

    def common_parser(self) -> argparse.ArgumentParser:
        """Parent parser holding the arguments every command accepts."""
        common = argparse.ArgumentParser(add_help=False)
        if not self.add_common_args:
            return common
        common.add_argument("--tenant", "-t", help="Tenant ID (default: $WORKIQ_TENANT_ID)")
        common.add_argument("--config", help="YAML config file (default: $WORKIQ_CONFIG or ~/.config/workiq/config.yaml)")
        common.add_argument("--no-cache", action="store_true", help="Bypass the answer cache")
        common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
        common.add_argument(
            "--output", "-o",
            choices=[f.value for f in OutputFormat],
            default=OutputFormat.TEXT.value,
            help="Output format for command results (default: text)",
        )
        return common

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            epilog=self.epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {self.version}")

        common = self.common_parser()
        subparsers = parser.add_subparsers(dest="command", metavar="<command>")
        for cmd_def in self._commands.values():
            cmd_parser = subparsers.add_parser(
                cmd_def.name,
                help=cmd_def.help,
                description=cmd_def.description,
                parents=[common],
            )
            self._add_command_arguments(cmd_parser, cmd_def)
            cmd_parser.set_defaults(_cmd_func=cmd_def.func)
        for group in self._groups.values():
            group_parser = subparsers.add_parser(group.name, help=group.help, description=group.description)
            group._build_subparsers(group_parser, common)
        return parser

    @staticmethod
    def _add_command_arguments(parser: argparse.ArgumentParser, cmd_def: CommandDef) -> None:
        for arg in cmd_def.arguments:
            parser.add_argument(*arg.name_or_flags, **arg.kwargs)

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse argv, run the selected command and return its exit code."""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        verbose = bool(getattr(args, "verbose", False))
        configure_logging(verbose)
        args._output = OutputWriter(OutputConfig(format=OutputFormat(getattr(args, "output", "text"))))

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            parser.print_help()
            return int(ExitCode.USAGE)

        try:
            return int(cmd_func(args))
        except KeyboardInterrupt as e:
            return handle_error(e)
        except Exception as e:
            return handle_error(e, verbose=verbose)

    def main(self, argv: Optional[Sequence[str]] = None) -> None:
        """Run the CLI and exit with the return code."""
        sys.exit(self.run(argv))


class CommandGroup:
    """A group of related commands (e.g. "cache" containing "stats" and "clear")."""

    def __init__(self, app: CLIApp, name: str, *, help: str = "", description: str = ""):
        self.app = app
        self.name = name
        self.help = help
        self.description = description or help
        self._commands: Dict[str, CommandDef] = {}

    def command(self, name: str, *, help: str = "", description: str = "") -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to register a command in this group."""
        def decorator(func: CommandFunc) -> CommandFunc:
            arguments = list(reversed(self.app._pending_arguments))
            self.app._pending_arguments.clear()
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
                parent=self.name,
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to add an argument. Delegates to app."""
        return self.app.argument(*name_or_flags, **kwargs)

    def _build_subparsers(self, parser: argparse.ArgumentParser, common: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(dest=f"{self.name}_cmd", metavar="<subcommand>")
        for cmd_def in self._commands.values():
            cmd_parser = subparsers.add_parser(
                cmd_def.name,
                help=cmd_def.help,
                description=cmd_def.description,
                parents=[common],
            )
            self.app._add_command_arguments(cmd_parser, cmd_def)
            cmd_parser.set_defaults(_cmd_func=cmd_def.func)
