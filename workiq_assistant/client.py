"""Query executor for the Work IQ CLI.

``WorkIQClient.ask`` is the single entry point that talks to the external
tool: cache first, then one subprocess call with a timeout and an output cap.
Batch helpers return one ``ResultEnvelope`` per question so callers decide
their own fallback text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from core.cache import CacheStats, QueryCache
from core.constants import MAX_OUTPUT_BYTES
from core.pipeline import ResultEnvelope

from .config import WorkIQSettings
from .errors import ExternalToolError, ExternalToolMissing, OutputTooLargeError, QueryTimeoutError
from .runner import CommandResult, CommandRunner, SubprocessRunner

LOG = logging.getLogger(__name__)


def escape_question(question: str) -> str:
    """Backslash-escape double and single quotes for display as a shell argument.

    Only quotes are neutralized; the result is for logs and is not safe
    shell input for untrusted text. Execution never goes through a shell.
    """
    return question.replace('"', '\\"').replace("'", "\\'")


class WorkIQClient:
    def __init__(
        self,
        settings: Optional[WorkIQSettings] = None,
        runner: Optional[CommandRunner] = None,
        cache: Optional[QueryCache] = None,
    ) -> None:
        self.settings = settings or WorkIQSettings()
        self.runner = runner or SubprocessRunner()
        self.cache = cache or QueryCache(self.settings.cache_dir, ttl=self.settings.cache_ttl)

    @property
    def tenant_id(self) -> Optional[str]:
        return self.settings.tenant_id

    def build_command(self, question: str, tenant: Optional[str] = None) -> List[str]:
        cmd = [self.settings.tool, "ask", "-q", question]
        if tenant:
            cmd.extend(["-t", tenant])
        return cmd

    def command_line(self, question: str, tenant: Optional[str] = None) -> str:
        """Human-readable equivalent of build_command() for logs."""
        line = f'{self.settings.tool} ask -q "{escape_question(question)}"'
        if tenant:
            line += f' -t "{tenant}"'
        return line

    def version(self) -> str:
        """First line of ``<tool> version``; raises ExternalToolMissing if it cannot run."""
        res = self.runner.run([self.settings.tool, "version"], timeout=self.settings.timeout_ms / 1000.0)
        if res.not_found or res.returncode != 0:
            raise ExternalToolMissing(self.settings.tool)
        return (res.stdout.strip().splitlines() or [""])[0]

    def _resolve(self, tenant: Optional[str], use_cache: bool, timeout_ms: Optional[int]):
        tenant = tenant or self.settings.tenant_id
        cached = use_cache and self.settings.cache_enabled
        timeout = self.settings.timeout_ms if timeout_ms is None else timeout_ms
        return tenant, cached, timeout

    def _finish(self, question: str, tenant: Optional[str], res: CommandResult, timeout_ms: int, cached: bool) -> str:
        if res.timed_out:
            raise QueryTimeoutError(timeout_ms)
        if res.not_found:
            raise ExternalToolMissing(self.settings.tool)
        size = len(res.stdout.encode("utf-8"))
        if res.truncated or size > MAX_OUTPUT_BYTES:
            raise OutputTooLargeError(size, MAX_OUTPUT_BYTES)
        if res.returncode != 0:
            detail = res.stderr.strip() or res.stdout.strip() or "no output"
            raise ExternalToolError(detail, res.returncode, res.stderr)
        result = res.stdout.strip()
        if cached:
            self.cache.put(question, tenant, result)
        return result

    def ask(
        self,
        question: str,
        tenant: Optional[str] = None,
        *,
        use_cache: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Answer one question; raises a WorkIQError subclass on failure."""
        tenant, cached, timeout = self._resolve(tenant, use_cache, timeout_ms)
        if cached:
            hit = self.cache.get(question, tenant)
            if hit is not None:
                return hit
        LOG.debug("running: %s", self.command_line(question, tenant))
        res = self.runner.run(self.build_command(question, tenant), timeout=timeout / 1000.0)
        return self._finish(question, tenant, res, timeout, cached)

    async def ask_async(
        self,
        question: str,
        tenant: Optional[str] = None,
        *,
        use_cache: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> str:
        """Coroutine form of ask() for use on a single event loop."""
        tenant, cached, timeout = self._resolve(tenant, use_cache, timeout_ms)
        if cached:
            hit = self.cache.get(question, tenant)
            if hit is not None:
                return hit
        LOG.debug("running: %s", self.command_line(question, tenant))
        res = await self.runner.run_async(self.build_command(question, tenant), timeout=timeout / 1000.0)
        return self._finish(question, tenant, res, timeout, cached)

    def try_ask(self, question: str, tenant: Optional[str] = None, *, use_cache: bool = True) -> ResultEnvelope[str]:
        try:
            return ResultEnvelope.success(self.ask(question, tenant, use_cache=use_cache))
        except ExternalToolMissing:
            raise
        except Exception as exc:
            LOG.warning("query failed: %s (%s)", question, exc)
            return ResultEnvelope.failure(exc, question=question)

    def ask_or(self, question: str, fallback: str, tenant: Optional[str] = None) -> str:
        """Answer text, or ``fallback`` when the query fails or is empty."""
        return self.try_ask(question, tenant).payload_or(fallback)

    def ask_many(
        self,
        questions: Sequence[str],
        tenant: Optional[str] = None,
        *,
        concurrency: Optional[int] = None,
        use_cache: bool = True,
    ) -> List[ResultEnvelope[str]]:
        """Answer several questions, keeping up to ``concurrency`` calls in flight.

        Results keep the order of ``questions``. A missing binary aborts the
        batch; every other failure becomes an error envelope.
        """
        limit = max(1, concurrency if concurrency is not None else self.settings.concurrency)
        if limit == 1 or len(questions) <= 1:
            return [self.try_ask(q, tenant, use_cache=use_cache) for q in questions]
        return asyncio.run(self._ask_many_async(list(questions), tenant, limit, use_cache))

    async def _ask_many_async(
        self, questions: List[str], tenant: Optional[str], limit: int, use_cache: bool
    ) -> List[ResultEnvelope[str]]:
        gate = asyncio.Semaphore(limit)

        async def one(question: str) -> ResultEnvelope[str]:
            async with gate:
                try:
                    return ResultEnvelope.success(await self.ask_async(question, tenant, use_cache=use_cache))
                except ExternalToolMissing:
                    raise
                except Exception as exc:
                    LOG.warning("query failed: %s (%s)", question, exc)
                    return ResultEnvelope.failure(exc, question=question)

        return list(await asyncio.gather(*(one(q) for q in questions)))

    def clear_cache(self) -> int:
        return self.cache.clear()

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()
