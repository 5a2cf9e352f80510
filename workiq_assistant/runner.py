from __future__ import annotations

import asyncio
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from core.constants import MAX_OUTPUT_BYTES

NOT_FOUND_RC = 127
TIMEOUT_RC = 124
CHUNK_BYTES = 64 * 1024


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int
    timed_out: bool = False
    truncated: bool = False

    @property
    def not_found(self) -> bool:
        return self.returncode == NOT_FOUND_RC and not self.stdout

    @property
    def combined(self) -> str:
        """stdout followed by stderr, like ``cmd 2>&1``."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class CommandRunner:
    """Simple abstraction to allow faking subprocess calls in tests."""

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:  # pragma: no cover - interface
        raise NotImplementedError

    async def run_async(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        """Coroutine form of run(); fakes inherit this and stay sequential."""
        return self.run(cmd, timeout=timeout)


def _decode(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode("utf-8", errors="replace")
    return data or ""


class _StreamReader(threading.Thread):
    """Drains one pipe, calling ``on_overflow`` once more than ``limit`` bytes arrive."""

    def __init__(self, stream, limit: Optional[int] = None, on_overflow=None):
        super().__init__(daemon=True)
        self.stream = stream
        self.limit = limit
        self.on_overflow = on_overflow
        self.data = bytearray()
        self.overflowed = False

    def run(self) -> None:
        while True:
            chunk = self.stream.read1(CHUNK_BYTES)
            if not chunk:
                break
            self.data.extend(chunk)
            if self.limit is not None and len(self.data) > self.limit:
                self.overflowed = True
                if self.on_overflow:
                    self.on_overflow()
                break
        self.stream.close()


class SubprocessRunner(CommandRunner):
    """Runs argv vectors directly (no shell), capturing at most ``max_output`` bytes of stdout.

    A process whose stdout grows past the cap is killed and the result is
    marked ``truncated``.
    """

    def __init__(self, max_output: Optional[int] = MAX_OUTPUT_BYTES):
        self.max_output = max_output

    def run(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        try:
            proc = subprocess.Popen(  # noqa: S603 - argv vector, no shell
                list(cmd),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError:
            return CommandResult(stdout="", stderr=f"{cmd[0]}: not found", returncode=NOT_FOUND_RC)
        out = _StreamReader(proc.stdout, self.max_output, on_overflow=proc.kill)
        err = _StreamReader(proc.stderr, self.max_output, on_overflow=proc.kill)
        out.start()
        err.start()
        timed_out = False
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            timed_out = True
        out.join()
        err.join()
        if timed_out:
            return CommandResult(
                stdout=_decode(out.data),
                stderr=_decode(err.data) or "timeout",
                returncode=TIMEOUT_RC,
                timed_out=True,
            )
        return CommandResult(
            stdout=_decode(out.data),
            stderr=_decode(err.data),
            returncode=proc.returncode,
            truncated=out.overflowed,
        )

    async def _read_capped(self, proc) -> tuple:
        data = bytearray()
        while True:
            chunk = await proc.stdout.read(CHUNK_BYTES)
            if not chunk:
                return bytes(data), False
            data.extend(chunk)
            if self.max_output is not None and len(data) > self.max_output:
                proc.kill()
                return bytes(data), True

    async def _collect(self, proc) -> CommandResult:
        (stdout, truncated), stderr = await asyncio.gather(self._read_capped(proc), proc.stderr.read())
        await proc.wait()
        return CommandResult(
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            returncode=proc.returncode or 0,
            truncated=truncated,
        )

    async def run_async(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return CommandResult(stdout="", stderr=f"{cmd[0]}: not found", returncode=NOT_FOUND_RC)
        try:
            return await asyncio.wait_for(self._collect(proc), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return CommandResult(stdout="", stderr="timeout", returncode=TIMEOUT_RC, timed_out=True)
