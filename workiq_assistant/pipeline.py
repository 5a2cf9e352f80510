from __future__ import annotations

"""Work IQ assistant pipeline components."""

import datetime as _dt
import logging
import smtplib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from core.cli_errors import CLIError
from core.pipeline import BaseProducer, SafeProcessor

from .briefing import DailyBriefing
from .client import WorkIQClient
from .emailer import send_html_email
from .formatters import Report, render_html, render_text
from .meeting_prep import MeetingPrep, PreparedBrief
from .verify import CheckResult, SetupVerifier, render_summary

LOG = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Daily briefing
# -----------------------------------------------------------------------------


@dataclass
class BriefingRequest:
    client: WorkIQClient
    fmt: str = "text"
    output_dir: Optional[str] = None
    email: Optional[str] = None
    concurrency: Optional[int] = None
    today: Optional[_dt.date] = None


@dataclass
class BriefingResult:
    report: Report
    path: Path
    email: Optional[str] = None
    email_error: Optional[str] = None


class BriefingProcessor(SafeProcessor[BriefingRequest, BriefingResult]):
    def __init__(self, send_fn: Optional[Callable[..., None]] = None) -> None:
        self._send = send_fn or send_html_email

    def _process_safe(self, payload: BriefingRequest) -> BriefingResult:
        briefing = DailyBriefing(payload.client, today=payload.today)
        report = briefing.generate(concurrency=payload.concurrency)
        path = briefing.save(report, payload.fmt, payload.output_dir)
        result = BriefingResult(report=report, path=path, email=payload.email)
        if payload.email:
            subject = f"{report.header.title} - {report.header.date_label}"
            try:
                self._send(payload.client.settings, payload.email, subject, render_html(report))
            except (CLIError, smtplib.SMTPException, OSError) as exc:
                # Email is optional: report it and keep the briefing
                LOG.warning("Email not sent: %s", exc)
                result.email_error = str(exc)
        return result


class BriefingProducer(BaseProducer):
    def _produce_success(self, payload: BriefingResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        print(render_text(payload.report))
        print(f"✅ Briefing saved: {payload.path}")
        if payload.email and payload.email_error:
            print(f"⚠️  Email not sent: {payload.email_error}")
        elif payload.email:
            print(f"✅ Briefing emailed to: {payload.email}")
        print("\n✅ Daily briefing completed!")


# -----------------------------------------------------------------------------
# Meeting preparation
# -----------------------------------------------------------------------------


@dataclass
class PrepRequest:
    client: WorkIQClient
    timeframe: str = "today"
    next_hours: Optional[int] = None
    fmt: str = "text"
    output_dir: Optional[str] = None


@dataclass
class PrepResult:
    briefs: List[PreparedBrief] = field(default_factory=list)
    timeframe: str = "today"


class PrepProcessor(SafeProcessor[PrepRequest, PrepResult]):
    def _process_safe(self, payload: PrepRequest) -> PrepResult:
        prep = MeetingPrep(payload.client, fmt=payload.fmt)
        if payload.next_hours is not None:
            return PrepResult(briefs=prep.prepare_next_hours(payload.next_hours), timeframe=f"next {payload.next_hours} hours")
        return PrepResult(briefs=prep.prepare_all(payload.timeframe, payload.output_dir), timeframe=payload.timeframe)


class PrepProducer(BaseProducer):
    def _produce_success(self, payload: PrepResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if not payload.briefs:
            print(f"No meetings found for {payload.timeframe}")
            return
        for prepared in payload.briefs:
            print(prepared.text)
            if prepared.path:
                print(f"Brief saved: {prepared.path}\n")
        print("Meeting preparation completed!")


# -----------------------------------------------------------------------------
# Setup verification
# -----------------------------------------------------------------------------


@dataclass
class VerifyRequest:
    verifier: SetupVerifier


class VerifyProcessor(SafeProcessor[VerifyRequest, List[CheckResult]]):
    def _process_safe(self, payload: VerifyRequest) -> List[CheckResult]:
        return payload.verifier.verify()


class VerifyProducer(BaseProducer):
    def _produce_success(self, payload: List[CheckResult], diagnostics: Optional[Dict[str, Any]]) -> None:
        print(render_summary(payload), end="")
