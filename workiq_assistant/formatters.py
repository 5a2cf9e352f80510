"""Text, Markdown and HTML renderings of briefing-style reports.

Every renderer is a pure function of its input: the generation time is part
of the report, and dates are formatted without consulting the locale.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from html import escape
from typing import Callable, Dict, List, Optional

from core.date_utils import format_timestamp
from core.text_utils import center_text

from .parsing import Meeting

TEXT_BOX_WIDTH = 68
TEXT_RULE_WIDTH = 70
BRIEF_WIDTH = 80

FORMATS = ("text", "markdown", "html")
FILE_EXTENSIONS: Dict[str, str] = {"text": ".txt", "markdown": ".md", "html": ".html"}


@dataclass
class Section:
    title: str
    icon: str
    content: str


@dataclass
class ReportHeader:
    title: str
    date_label: str
    generated_at: _dt.datetime


@dataclass
class Report:
    header: ReportHeader
    sections: List[Section] = field(default_factory=list)


def render_text(report: Report) -> str:
    h = report.header
    out: List[str] = []
    out.append("╔" + "═" * TEXT_BOX_WIDTH + "╗")
    out.append("║" + center_text(h.title.upper(), TEXT_BOX_WIDTH) + "║")
    out.append("║" + center_text(h.date_label, TEXT_BOX_WIDTH) + "║")
    out.append("╚" + "═" * TEXT_BOX_WIDTH + "╝")
    out.append("")
    for s in report.sections:
        out.append(f"{s.icon} {s.title}")
        out.append("─" * TEXT_RULE_WIDTH)
        out.append(s.content)
        out.append("")
    out.append("─" * TEXT_RULE_WIDTH)
    out.append(f"Generated: {format_timestamp(h.generated_at)}")
    return "\n".join(out) + "\n"


def render_markdown(report: Report) -> str:
    h = report.header
    out: List[str] = [f"# {h.title}", "", f"**{h.date_label}**", "", "---", ""]
    for s in report.sections:
        out.extend([f"## {s.icon} {s.title}", "", s.content, ""])
    out.extend(["---", "", f"*Generated: {format_timestamp(h.generated_at)}*"])
    return "\n".join(out) + "\n"


HTML_STYLE = """\
    body {
      font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
      max-width: 900px;
      margin: 40px auto;
      padding: 20px;
      background: #f5f5f5;
    }
    .container {
      background: white;
      border-radius: 8px;
      box-shadow: 0 2px 4px rgba(0,0,0,0.1);
      padding: 30px;
    }
    .header {
      text-align: center;
      border-bottom: 3px solid #0078D4;
      padding-bottom: 20px;
      margin-bottom: 30px;
    }
    .header h1 { color: #0078D4; margin: 0; }
    .header .date { color: #666; font-size: 18px; margin-top: 10px; }
    .section {
      margin-bottom: 30px;
      padding: 20px;
      background: #f9f9f9;
      border-left: 4px solid #0078D4;
      border-radius: 4px;
    }
    .section-title { font-size: 24px; margin-bottom: 15px; color: #333; }
    .section-content { color: #555; line-height: 1.6; white-space: pre-wrap; }
    .footer {
      text-align: center;
      color: #999;
      font-size: 12px;
      margin-top: 30px;
      padding-top: 20px;
      border-top: 1px solid #ddd;
    }
"""


def render_html(report: Report) -> str:
    """Standalone HTML page for ``report``.

    Section content is escaped for ``&``, ``<`` and ``>`` (titles also for
    quotes), so those characters appear as entities in the markup rather
    than verbatim. Everything else passes through unchanged.
    """
    h = report.header
    title = escape(h.title)
    date_label = escape(h.date_label)
    out: List[str] = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '  <meta charset="UTF-8">',
        f"  <title>{title} - {date_label}</title>",
        "  <style>",
        HTML_STYLE.rstrip("\n"),
        "  </style>",
        "</head>",
        "<body>",
        '  <div class="container">',
        '    <div class="header">',
        f"      <h1>📊 {title}</h1>",
        f'      <div class="date">{date_label}</div>',
        "    </div>",
    ]
    for s in report.sections:
        out.extend([
            '    <div class="section">',
            f'      <div class="section-title">{s.icon} {escape(s.title)}</div>',
            f'      <div class="section-content">{escape(s.content, quote=False)}</div>',
            "    </div>",
        ])
    out.extend([
        '    <div class="footer">',
        f"      Generated: {format_timestamp(h.generated_at)}",
        "    </div>",
        "  </div>",
        "</body>",
        "</html>",
    ])
    return "\n".join(out) + "\n"


RENDERERS: Dict[str, Callable[[Report], str]] = {
    "text": render_text,
    "markdown": render_markdown,
    "html": render_html,
}


def render(report: Report, fmt: str = "text") -> str:
    try:
        renderer = RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown format {fmt!r}; choose from {', '.join(FORMATS)}") from None
    return renderer(report)


# -----------------------------------------------------------------------------
# Meeting preparation briefs
# -----------------------------------------------------------------------------


@dataclass
class MeetingBrief:
    meeting: Meeting
    previous_meetings: Optional[str] = None
    related_emails: Optional[str] = None
    relevant_documents: Optional[str] = None
    participant_info: Optional[str] = None
    action_items: Optional[str] = None

    def context_sections(self) -> List[Section]:
        """Fetched context blocks in display order; missing blocks are skipped."""
        blocks = [
            ("📅", "Previous Meetings", self.previous_meetings),
            ("📧", "Related Email Discussions", self.related_emails),
            ("📄", "Relevant Documents", self.relevant_documents),
            ("👥", "Participant Context", self.participant_info),
            ("✅", "Pending Action Items", self.action_items),
        ]
        return [Section(title=t, icon=i, content=c) for i, t, c in blocks if c]


def _participants_block(meeting: Meeting) -> str:
    if not meeting.participants:
        return "Not specified"
    return "\n".join(f"• {p}" for p in meeting.participants)


def render_meeting_brief(brief: MeetingBrief, generated_at: _dt.datetime) -> str:
    heavy = "═" * BRIEF_WIDTH
    light = "─" * BRIEF_WIDTH
    m = brief.meeting
    out: List[str] = [heavy, "MEETING PREPARATION BRIEF", m.title, m.time, heavy, ""]
    out.extend(["📋 PARTICIPANTS", light, _participants_block(m), ""])
    for s in brief.context_sections():
        out.extend([f"{s.icon} {s.title.upper()}", light, s.content, ""])
    out.extend([heavy, f"Generated: {format_timestamp(generated_at)}", heavy])
    return "\n".join(out) + "\n"


def meeting_brief_report(brief: MeetingBrief, generated_at: _dt.datetime) -> Report:
    """The same brief as a generic Report, for Markdown/HTML output."""
    m = brief.meeting
    header = ReportHeader(title=f"Meeting Prep: {m.title}", date_label=m.time or "Time not specified", generated_at=generated_at)
    sections = [Section(title="Participants", icon="📋", content=_participants_block(m))]
    sections.extend(brief.context_sections())
    return Report(header=header, sections=sections)


def render_meeting_brief_as(brief: MeetingBrief, generated_at: _dt.datetime, fmt: str = "text") -> str:
    if fmt == "text":
        return render_meeting_brief(brief, generated_at)
    return render(meeting_brief_report(brief, generated_at), fmt)
