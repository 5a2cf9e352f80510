"""Meeting preparation: find upcoming meetings and gather context for each."""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from core.constants import MEETING_BRIEFS_SUBDIR
from core.date_utils import format_date
from core.text_utils import slugify

from .client import WorkIQClient
from .errors import ExternalToolMissing
from .formatters import FILE_EXTENSIONS, MeetingBrief, render_meeting_brief_as
from .parsing import Meeting, parse_meetings_detailed

LOG = logging.getLogger(__name__)

MAX_PARTICIPANTS_IN_QUERY = 3


@dataclass
class PreparedBrief:
    brief: MeetingBrief
    text: str
    path: Optional[Path] = None


class MeetingPrep:
    def __init__(
        self,
        client: WorkIQClient,
        now: Callable[[], _dt.datetime] = _dt.datetime.now,
        fmt: str = "text",
    ) -> None:
        self.client = client
        self._now = now
        self.fmt = fmt

    def _meetings_from(self, question: str) -> List[Meeting]:
        parsed = parse_meetings_detailed(self.client.ask(question))
        if not parsed.fully_parsed:
            LOG.debug("meeting list only partially parsed")
        return parsed.meetings

    def upcoming_meetings(self, timeframe: str = "today") -> List[Meeting]:
        LOG.info("Fetching meetings for: %s", timeframe)
        return self._meetings_from(
            f"What meetings do I have {timeframe}? Include time, participants, and subject."
        )

    def _context(self, question: str, label: str) -> Optional[str]:
        try:
            return self.client.ask(question) or None
        except ExternalToolMissing:
            raise
        except Exception as exc:
            LOG.warning("Could not fetch %s (%s)", label, exc)
            return None

    def prepare(self, meeting: Meeting) -> MeetingBrief:
        """Gather context for one meeting; failed lookups leave their block empty."""
        LOG.info("Preparing context for: %s", meeting.title)
        title = meeting.title
        brief = MeetingBrief(meeting=meeting)
        brief.previous_meetings = self._context(
            f'What were previous meetings about "{title}" or similar topics?', "previous meetings"
        )
        brief.related_emails = self._context(f'Summarize recent emails related to "{title}"', "related emails")
        brief.relevant_documents = self._context(f'Find documents related to "{title}"', "relevant documents")
        if meeting.participants:
            names = ", ".join(meeting.participants[:MAX_PARTICIPANTS_IN_QUERY])
            brief.participant_info = self._context(
                f"What recent work have {names} been involved in?", "participant info"
            )
        brief.action_items = self._context(
            f'What action items or commitments are related to "{title}"?', "action items"
        )
        return brief

    def render(self, brief: MeetingBrief) -> str:
        return render_meeting_brief_as(brief, self._now(), self.fmt)

    def filename(self, meeting: Meeting) -> str:
        return f"{format_date(self._now().date())}-{slugify(meeting.title)}{FILE_EXTENSIONS[self.fmt]}"

    def save(self, text: str, meeting: Meeting, output_dir: Optional[str] = None) -> Path:
        out_dir = Path(output_dir or self.client.settings.output_dir) / MEETING_BRIEFS_SUBDIR
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / self.filename(meeting)
        path.write_text(text, encoding="utf-8")
        LOG.info("Brief saved: %s", path)
        return path

    def prepare_all(self, timeframe: str = "today", output_dir: Optional[str] = None) -> List[PreparedBrief]:
        """Prepare, render and save a brief for every meeting in ``timeframe``."""
        meetings = self.upcoming_meetings(timeframe)
        if not meetings:
            LOG.info("No meetings found for %s", timeframe)
            return []
        LOG.info("Found %d meeting(s) to prepare for", len(meetings))
        prepared: List[PreparedBrief] = []
        for meeting in meetings:
            brief = self.prepare(meeting)
            text = self.render(brief)
            prepared.append(PreparedBrief(brief=brief, text=text, path=self.save(text, meeting, output_dir)))
        return prepared

    def prepare_next_hours(self, hours: int = 2) -> List[PreparedBrief]:
        """Prepare briefs for meetings in the next ``hours`` hours (not saved)."""
        LOG.info("Preparing for meetings in the next %d hour(s)", hours)
        meetings = self._meetings_from(f"What meetings do I have in the next {hours} hours?")
        if not meetings:
            LOG.info("No meetings in the specified timeframe")
            return []
        prepared: List[PreparedBrief] = []
        for meeting in meetings:
            brief = self.prepare(meeting)
            prepared.append(PreparedBrief(brief=brief, text=self.render(brief)))
        return prepared
