"""Fake command runners for the Work IQ binary."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from workiq_assistant.runner import NOT_FOUND_RC, TIMEOUT_RC, CommandResult, CommandRunner


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", returncode=0)


def missing() -> CommandResult:
    return CommandResult(stdout="", stderr="missing", returncode=NOT_FOUND_RC)


class FakeRunner(CommandRunner):
    """Answers by exact argv or by question text; records every call.

    Example usage:
        runner = FakeRunner(default=ok("nothing"))
        runner.answer("What meetings do I have today?", "1. Standup")
        runner.add(["workiq", "version"], stdout="workiq 1.2.0")
    """

    def __init__(self, default: Optional[CommandResult] = None):
        self._results: Dict[Tuple[str, ...], CommandResult] = {}
        self._answers: Dict[str, CommandResult] = {}
        self.default = default or missing()
        self.calls: List[List[str]] = []
        self.timeouts: List[Optional[float]] = []

    def add(self, cmd: Sequence[str], stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        self._results[tuple(cmd)] = CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)

    def answer(self, question: str, stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        self._answers[question] = CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)

    def time_out(self, question: str) -> None:
        self._answers[question] = CommandResult(stdout="", stderr="timeout", returncode=TIMEOUT_RC, timed_out=True)

    @property
    def questions(self) -> List[str]:
        return [c[3] for c in self.calls if len(c) >= 4 and c[1:3] == ["ask", "-q"]]

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        cmd = list(cmd)
        self.calls.append(cmd)
        self.timeouts.append(timeout)
        if tuple(cmd) in self._results:
            return self._results[tuple(cmd)]
        if len(cmd) >= 4 and cmd[1:3] == ["ask", "-q"] and cmd[3] in self._answers:
            return self._answers[cmd[3]]
        return self.default


class ConcurrencyRunner(FakeRunner):
    """FakeRunner whose async path yields to the loop and tracks calls in flight."""

    def __init__(self, default: Optional[CommandResult] = None, delay: float = 0.01):
        super().__init__(default=default)
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def run_async(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return self.run(cmd, timeout=timeout)
        finally:
            self.in_flight -= 1
