"""Daily briefing: meetings, email, documents, action items and team updates.

Each section is built from one or more questions. A failed or empty answer
becomes the section's placeholder text, so one bad query never aborts the
whole briefing.
"""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from core.date_utils import format_date, format_long_date
from core.text_utils import contains_any

from .client import WorkIQClient
from .formatters import FILE_EXTENSIONS, Report, ReportHeader, Section, render

LOG = logging.getLogger(__name__)

BRIEFING_TITLE = "Daily Briefing"


@dataclass(frozen=True)
class SectionSpec:
    title: str
    icon: str
    questions: Tuple[str, ...]
    placeholder: str
    # Answers containing any of these are treated as "nothing to report"
    skip_markers: Tuple[str, ...] = ()
    separator: str = "\n\n"


SECTIONS: Tuple[SectionSpec, ...] = (
    SectionSpec(
        title="Meetings",
        icon="📅",
        questions=("What meetings do I have today? Include time, participants, and join links.",),
        placeholder="No meetings found",
    ),
    SectionSpec(
        title="Important Emails",
        icon="📧",
        questions=(
            "Show unread emails from my manager",
            "Show emails marked as important from today",
            "Show emails that mention action items",
        ),
        placeholder="No important emails",
        skip_markers=("no emails", "not found"),
        separator="\n\n---\n\n",
    ),
    SectionSpec(
        title="Documents",
        icon="📄",
        questions=("What documents did I work on yesterday? What files were shared with me today?",),
        placeholder="No recent documents",
    ),
    SectionSpec(
        title="Action Items",
        icon="✅",
        questions=(
            "What action items were mentioned in yesterday's meetings?",
            "What tasks do I need to follow up on?",
            "What commitments did I make in recent emails?",
        ),
        placeholder="No pending action items",
        skip_markers=("no action items", "not found"),
    ),
    SectionSpec(
        title="Team Updates",
        icon="👥",
        questions=("Summarize important messages in my Teams channels from yesterday and today",),
        placeholder="No recent team updates",
    ),
)


def assemble_section(spec: SectionSpec, answers: Sequence[Optional[str]]) -> Section:
    """Combine the answers for one section, falling back to its placeholder."""
    kept = [a for a in answers if a and not contains_any(a, spec.skip_markers)]
    content = spec.separator.join(kept) if kept else spec.placeholder
    return Section(title=spec.title, icon=spec.icon, content=content)


class DailyBriefing:
    def __init__(
        self,
        client: WorkIQClient,
        today: Optional[_dt.date] = None,
        now: Callable[[], _dt.datetime] = _dt.datetime.now,
        sections: Sequence[SectionSpec] = SECTIONS,
    ) -> None:
        self.client = client
        self._now = now
        self.today = today or now().date()
        self.sections = tuple(sections)

    def generate(self, concurrency: Optional[int] = None) -> Report:
        """Ask every section question and assemble the report."""
        questions: List[str] = [q for spec in self.sections for q in spec.questions]
        LOG.info("Generating daily briefing (%d queries)", len(questions))
        envelopes = self.client.ask_many(questions, concurrency=concurrency)

        built: List[Section] = []
        offset = 0
        for spec in self.sections:
            chunk = envelopes[offset: offset + len(spec.questions)]
            offset += len(spec.questions)
            answers = [env.payload if env.ok() else None for env in chunk]
            built.append(assemble_section(spec, answers))

        header = ReportHeader(
            title=BRIEFING_TITLE,
            date_label=format_long_date(self.today),
            generated_at=self._now(),
        )
        return Report(header=header, sections=built)

    def filename(self, fmt: str) -> str:
        return f"briefing-{format_date(self.today)}{FILE_EXTENSIONS[fmt]}"

    def save(self, report: Report, fmt: str = "text", output_dir: Optional[str] = None) -> Path:
        """Write the briefing in ``fmt`` to the output directory; returns the path."""
        out_dir = Path(output_dir or self.client.settings.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.filename(fmt)
        path.write_text(render(report, fmt), encoding="utf-8")
        LOG.info("Briefing saved: %s", path)
        return path
