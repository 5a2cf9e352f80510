"""Setup verification: is this machine ready to query Work IQ?

Runs a fixed, ordered checklist. Every check always runs and reports through
``CheckResult``; only ``exit_status`` decides whether the run failed.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from dotenv import dotenv_values

from core.constants import (
    AUTH_PROBE_TIMEOUT_MS,
    DEFAULT_ENV_FILE,
    DEFAULT_TOOL,
    ENV_PLACEHOLDER_PREFIX,
    EULA_HINT,
    INSTALL_HINT,
    MIN_PYTHON,
    REQUIRED_ENV_KEYS,
)
from core.text_utils import center_text

from .runner import CommandRunner, SubprocessRunner

LOG = logging.getLogger(__name__)

PASS = "pass"
FAIL = "fail"
WARN = "warn"

ICONS = {PASS: "✅", FAIL: "❌", WARN: "⚠️ "}
AUTH_MARKERS = ("Authentication", "login")


@dataclass(frozen=True)
class CheckResult:
    status: str
    message: str
    hint: Optional[str] = None


def _pass(message: str) -> CheckResult:
    return CheckResult(PASS, message)


def _fail(message: str, hint: Optional[str] = None) -> CheckResult:
    return CheckResult(FAIL, message, hint)


def _warn(message: str, hint: Optional[str] = None) -> CheckResult:
    return CheckResult(WARN, message, hint)


class SetupVerifier:
    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        tool: str = DEFAULT_TOOL,
        env_path: str = DEFAULT_ENV_FILE,
        python_version: Sequence[int] = tuple(sys.version_info[:3]),
        required_keys: Sequence[str] = REQUIRED_ENV_KEYS,
    ) -> None:
        self.runner = runner or SubprocessRunner()
        self.tool = tool
        self.env_path = env_path
        self.python_version = tuple(python_version)
        self.required_keys = tuple(required_keys)

    def checks(self) -> List[Tuple[str, Callable[[], List[CheckResult]]]]:
        return [
            ("Python", self.check_python),
            ("Work IQ CLI", self.check_cli),
            ("EULA", self.check_eula),
            ("Environment", self.check_env_file),
            ("Authentication", self.check_auth),
            ("Permissions", self.check_permissions),
        ]

    def verify(self) -> List[CheckResult]:
        results: List[CheckResult] = []
        for name, check in self.checks():
            try:
                results.extend(check())
            except Exception as exc:
                LOG.debug("%s check crashed", name, exc_info=True)
                results.append(_fail(f"{name}: check could not run ({exc})"))
        return results

    def check_python(self) -> List[CheckResult]:
        version = ".".join(str(p) for p in self.python_version)
        if self.python_version[:2] >= MIN_PYTHON:
            return [_pass(f"Python: {version} (OK)")]
        need = ".".join(str(p) for p in MIN_PYTHON)
        return [_fail(f"Python: {version} (Need >= {need})", hint=f"Install Python {need} or newer")]

    def check_cli(self) -> List[CheckResult]:
        res = self.runner.run([self.tool, "version"], timeout=AUTH_PROBE_TIMEOUT_MS / 1000.0)
        if res.returncode != 0 or res.not_found:
            return [_fail("Work IQ CLI: Not installed", hint=INSTALL_HINT)]
        first = (res.stdout.strip().splitlines() or ["unknown version"])[0]
        return [_pass(f"Work IQ CLI: {first} (OK)")]

    def check_eula(self) -> List[CheckResult]:
        res = self.runner.run([self.tool, "ask", "-q", "test"], timeout=AUTH_PROBE_TIMEOUT_MS / 1000.0)
        if res.not_found:
            return [_warn("EULA: Could not verify (Work IQ CLI not available)")]
        if res.returncode != 0 and "EULA" in res.combined:
            return [_fail("EULA: Not accepted", hint=EULA_HINT)]
        return [_pass("EULA: Accepted")]

    def check_env_file(self) -> List[CheckResult]:
        if not os.path.isfile(self.env_path):
            return [_warn("Environment: .env file not found", hint="Copy .env.example to .env and configure")]
        results = [_pass("Environment: .env file exists")]
        values = dotenv_values(self.env_path)
        for key in self.required_keys:
            value = (values.get(key) or "").strip()
            if value and not value.startswith(ENV_PLACEHOLDER_PREFIX):
                results.append(_pass(f"  ✓ {key} configured"))
            else:
                results.append(_warn(f"  ⚠ {key} not configured", hint=f"Set {key} in {self.env_path}"))
        return results

    def check_auth(self) -> List[CheckResult]:
        res = self.runner.run([self.tool, "ask", "-q", "test query"], timeout=AUTH_PROBE_TIMEOUT_MS / 1000.0)
        output = res.combined
        login_hint = 'Run a query to authenticate: workiq ask -q "What meetings do I have today?"'
        if res.timed_out:
            return [_warn("Authentication: Could not verify (timeout)")]
        if res.not_found:
            return [_warn("Authentication: Could not verify (Work IQ CLI not available)")]
        if any(marker in output for marker in AUTH_MARKERS):
            return [_warn("Authentication: Not authenticated", hint=login_hint)]
        if res.returncode != 0:
            if "permission" in output.lower():
                return [_fail("Authentication: Permission denied", hint="Ask your tenant admin to grant Work IQ access")]
            return [_pass("Authentication: Likely valid")]
        return [_pass("Authentication: Valid")]

    def check_permissions(self) -> List[CheckResult]:
        # Real permission checks need admin API access
        return [_pass("Permissions: Assumed valid (run queries to verify)")]


def count(results: Sequence[CheckResult], status: str) -> int:
    return sum(1 for r in results if r.status == status)


def exit_status(results: Sequence[CheckResult]) -> int:
    """1 if any check failed, else 0 (warnings never block)."""
    return 1 if count(results, FAIL) else 0


def format_result(result: CheckResult) -> str:
    return f"{ICONS.get(result.status, '?')} {result.message}"


def render_summary(results: Sequence[CheckResult]) -> str:
    lines: List[str] = []
    lines.append("╔" + "═" * 68 + "╗")
    lines.append("║" + center_text("Work IQ Setup Verification", 68) + "║")
    lines.append("╚" + "═" * 68 + "╝")
    lines.append("")
    lines.extend(format_result(r) for r in results)
    lines.append("")
    lines.append("─" * 70)
    passed, failed, warned = count(results, PASS), count(results, FAIL), count(results, WARN)
    lines.append("")
    lines.append(f"Results: {passed} passed, {failed} failed, {warned} warnings")
    lines.append("")
    if failed:
        lines.append("❌ Setup incomplete. Please address the following:")
        lines.append("")
        lines.extend(f"  • {r.hint}" for r in results if r.status == FAIL and r.hint)
    elif warned:
        lines.append("⚠️  Setup complete with warnings:")
        lines.append("")
        lines.extend(f"  • {r.hint}" for r in results if r.status == WARN and r.hint)
        lines.append("")
        lines.append("✅ You can proceed, but consider addressing warnings.")
    else:
        lines.append("✅ All checks passed! You're ready to use Work IQ.")
        lines.append("")
        lines.append("Next steps:")
        lines.append("  • Try some queries: workiq-assistant demo")
        lines.append("  • Generate a briefing: workiq-assistant briefing")
        lines.append("  • Prepare for meetings: workiq-assistant prep")
    return "\n".join(lines) + "\n"
