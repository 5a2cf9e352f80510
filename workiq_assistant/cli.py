"""Work IQ assistant CLI using CLIApp framework."""

from __future__ import annotations

import argparse
import os
from typing import Any, Dict, Optional

from core.cli_errors import ExitCode, UsageError
from core.cli_framework import CLIApp
from core.cli_output import OutputFormat
from core.constants import DEFAULT_ENV_FILE, default_config_path
from core.date_utils import format_duration
from core.pipeline import run_pipeline
from core.yamlio import dump_config

from .client import WorkIQClient
from .config import WorkIQSettings, load_settings
from .context import find_expert, meeting_context, project_context
from .formatters import FORMATS
from .parsing import extract_json
from .pipeline import (
    BriefingProcessor,
    BriefingProducer,
    BriefingRequest,
    PrepProcessor,
    PrepProducer,
    PrepRequest,
    VerifyProcessor,
    VerifyProducer,
    VerifyRequest,
)
from .queries import DEFAULT_CATEGORIES, QUERY_CATALOG, run_demo
from .runner import SubprocessRunner
from .verify import SetupVerifier, exit_status

APP_NAME = "workiq-assistant"
PURPOSE = "Ask Work IQ about your calendar, email, documents and chats; build briefings"

app = CLIApp(APP_NAME, PURPOSE)


def _settings(args: argparse.Namespace, tenant: Optional[str] = None) -> WorkIQSettings:
    overrides: Dict[str, Any] = {"tenant_id": tenant or getattr(args, "tenant", None)}
    if getattr(args, "no_cache", False):
        overrides["cache_enabled"] = False
    return load_settings(getattr(args, "config", None), overrides=overrides)


def _client(args: argparse.Namespace, tenant: Optional[str] = None) -> WorkIQClient:
    return WorkIQClient(_settings(args, tenant), runner=SubprocessRunner())


# Note: @argument decorators must come BEFORE @command (decorators apply bottom-up)
@app.command("ask", help="Ask Work IQ a single question")
@app.argument("question", nargs="+", help="Question text (quote it or pass several words)")
@app.argument("--timeout-ms", type=int, help="Per-call timeout in milliseconds")
@app.argument("--extract-json", action="store_true", help="Print only the JSON value found in the answer")
def cmd_ask(args) -> int:
    question = " ".join(args.question)
    client = _client(args)
    answer = client.ask(question, use_cache=not args.no_cache, timeout_ms=args.timeout_ms)
    if args.extract_json:
        data = extract_json(answer)
        if data is None:
            args._output.print("No JSON found in the answer")
            return int(ExitCode.ERROR)
        if not args._output.machine_readable:
            args._output.config.format = OutputFormat.JSON
        args._output.print_data(data)
        return 0
    if args._output.machine_readable:
        args._output.print_data({"question": question, "tenant": client.tenant_id, "answer": answer})
    else:
        args._output.print(answer)
    return 0


@app.command("demo", help="Run the example question sets")
@app.argument(
    "--category", "-c",
    action="append",
    choices=sorted(QUERY_CATALOG),
    help="Question set to run (repeatable; default: calendar)",
)
@app.argument("--all", action="store_true", help="Run every question set")
def cmd_demo(args) -> int:
    client = _client(args)
    client.version()
    categories = sorted(QUERY_CATALOG) if args.all else (args.category or list(DEFAULT_CATEGORIES))
    print("Work IQ CLI - Basic Queries Demo")
    print("=" * 50)
    failures = run_demo(client, categories)
    print("\n\n✅ Demo completed!")
    print("\nTips:")
    print(f"- Results are cached for {format_duration(client.settings.cache_ttl)}")
    print(f"- Run with tenant ID: {APP_NAME} demo --tenant <tenant-id>")
    print(f"- Clear cache: {APP_NAME} cache clear")
    if failures:
        print(f"- {failures} quer{'y' if failures == 1 else 'ies'} failed; see [ERROR] lines above")
    return 0


@app.command("briefing", help="Generate today's briefing and save it to the output directory")
@app.argument("tenant_arg", nargs="?", metavar="tenant", help="Tenant ID (overrides $WORKIQ_TENANT_ID)")
@app.argument("format", nargs="?", default="text", choices=FORMATS, help="File format (default: text)")
@app.argument("email", nargs="?", help="Optional recipient to email the HTML briefing to")
@app.argument("--out-dir", help="Output directory (default: settings output_dir)")
@app.argument("--concurrency", type=int, help="Queries in flight at once (default: 1)")
def cmd_briefing(args) -> int:
    if args.tenant_arg in FORMATS and args.format == "text" and not args.email:
        # `briefing html` names a format, not a tenant
        args.tenant_arg, args.format = None, args.tenant_arg
    client = _client(args, args.tenant_arg)
    request = BriefingRequest(
        client=client,
        fmt=args.format,
        output_dir=args.out_dir,
        email=args.email,
        concurrency=args.concurrency,
    )
    return run_pipeline(request, BriefingProcessor(), BriefingProducer())


PREP_TIMEFRAMES = ("today", "tomorrow", "this week", "next")


def _shift_prep_positionals(args: argparse.Namespace) -> None:
    """`prep tomorrow` and `prep next 2` leave the tenant out; move the words left."""
    if args.tenant_arg not in PREP_TIMEFRAMES:
        return
    if args.hours is not None:
        raise UsageError(f"unexpected argument {args.hours}", hint=f"{APP_NAME} prep [tenant] next 2")
    extra = args.timeframe
    args.tenant_arg, args.timeframe = None, args.tenant_arg
    if extra is not None:
        if not extra.isdigit():
            raise UsageError(f"unexpected argument {extra!r}", hint=f"{APP_NAME} prep [tenant] next 2")
        args.hours = int(extra)


@app.command("prep", help="Prepare briefs for upcoming meetings")
@app.argument("tenant_arg", nargs="?", metavar="tenant", help="Tenant ID (overrides $WORKIQ_TENANT_ID)")
@app.argument("timeframe", nargs="?", help="today (default), tomorrow, 'this week', or 'next' with HOURS")
@app.argument("hours", nargs="?", type=int, help="With timeframe 'next': hours to look ahead")
@app.argument("--format", dest="brief_format", default="text", choices=FORMATS, help="Brief format (default: text)")
@app.argument("--out-dir", help="Output directory (default: settings output_dir)")
def cmd_prep(args) -> int:
    _shift_prep_positionals(args)
    timeframe = args.timeframe or "today"
    if timeframe == "next" and args.hours is None:
        raise UsageError("'next' needs a number of hours", hint=f"{APP_NAME} prep [tenant] next 2")
    client = _client(args, args.tenant_arg)
    request = PrepRequest(
        client=client,
        timeframe=timeframe,
        next_hours=args.hours if timeframe == "next" else None,
        fmt=args.brief_format,
        output_dir=args.out_dir,
    )
    print("\nMeeting Preparation Tool")
    print("═" * 80)
    return run_pipeline(request, PrepProcessor(), PrepProducer())


@app.command("verify", help="Check that Work IQ and this environment are set up")
@app.argument("--env-file", default=DEFAULT_ENV_FILE, help="dotenv file to inspect (default: ./.env)")
def cmd_verify(args) -> int:
    settings = _settings(args)
    verifier = SetupVerifier(runner=SubprocessRunner(), tool=settings.tool, env_path=args.env_file)
    processor = VerifyProcessor()
    envelope = processor.process(VerifyRequest(verifier=verifier))
    if args._output.machine_readable:
        args._output.print_data(envelope.payload or [])
    else:
        VerifyProducer().produce(envelope)
    return exit_status(envelope.payload or [])


cache = app.group("cache", help="Inspect or clear the answer cache")


@cache.command("stats", help="Show cache entry counts and size")
def cmd_cache_stats(args) -> int:
    stats = _client(args).cache_stats()
    if args._output.machine_readable:
        args._output.print_data(stats.to_dict())
        return 0
    args._output.print_dict({
        "Total entries": stats.total,
        "Valid entries": stats.valid,
        "Expired entries": stats.expired,
        "Total size": f"{stats.size_mb} MB ({stats.size_bytes} bytes)",
    })
    return 0


@cache.command("clear", help="Remove every cached answer")
def cmd_cache_clear(args) -> int:
    removed = _client(args).clear_cache()
    if args._output.machine_readable:
        args._output.print_data({"removed": removed})
    else:
        args._output.print(f"Cache cleared ({removed} entr{'y' if removed == 1 else 'ies'} removed)")
    return 0


context = app.group("context", help="Gather several answers about one meeting, project or topic")


def _print_context(args, data) -> int:
    if args._output.machine_readable:
        args._output.print_data(data)
        return 0
    for key, answer in data.items():
        args._output.print(f"\n{key.replace('_', ' ').title()}:")
        args._output.print(answer if answer is not None else "(unavailable)")
    return 0


@context.command("meeting", help="Details, participants, decisions and documents of a meeting")
@app.argument("meeting_id", help="Meeting ID")
def cmd_context_meeting(args) -> int:
    return _print_context(args, meeting_context(_client(args), args.meeting_id))


@context.command("project", help="Meetings, emails, documents and people around a project")
@app.argument("project", help="Project name")
def cmd_context_project(args) -> int:
    return _print_context(args, project_context(_client(args), args.project))


@context.command("expert", help="Find people who know about a topic")
@app.argument("topic", nargs="+", help="Topic words")
def cmd_context_expert(args) -> int:
    topic = " ".join(args.topic)
    found = find_expert(_client(args), topic)
    if args._output.machine_readable:
        args._output.print_data({"topic": topic, "experts": found or None})
    else:
        args._output.print(found or f"No experts found for {topic}")
    return 0


config = app.group("config", help="Show or create the YAML settings file")


@config.command("show", help="Print the resolved settings")
def cmd_config_show(args) -> int:
    args._output.print_data(_settings(args).redacted())
    return 0


@config.command("init", help="Write a settings file with the current values")
@app.argument("--path", help="Target file (default: $WORKIQ_CONFIG or ~/.config/workiq/config.yaml)")
@app.argument("--force", action="store_true", help="Overwrite an existing file")
def cmd_config_init(args) -> int:
    path = args.path or args.config or default_config_path()
    if os.path.exists(path) and not args.force:
        raise UsageError(f"{path} already exists", hint="Pass --force to overwrite it")
    data = _settings(args).redacted()
    for secret in ("smtp_pass", "tenant_id"):
        data.pop(secret, None)
    dump_config(path, data)
    args._output.print(f"Wrote {path}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the Work IQ assistant CLI."""
    return app.run(argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
