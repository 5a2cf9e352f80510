"""Best-effort parsing of free-text Work IQ answers.

The CLI answers in natural language, so nothing here is a grammar. The
meeting parser follows the layout the CLI usually produces::

    1. Weekly sync
       Time: 3:00 PM
       Participants: Alice, Bob
    2. Design review
       Time: 4:30 PM

Lines it does not recognize are dropped; the ``fully_parsed`` flag tells the
caller whether that happened.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import ParseError

LOG = logging.getLogger(__name__)

RE_RECORD = re.compile(r"^\d+\.")
RE_RECORD_PREFIX = re.compile(r"^\d+\.\s*")
RE_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
RE_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

TIME_MARKER = "Time:"
PARTICIPANTS_MARKER = "Participants:"
UNTITLED = "(untitled)"


@dataclass
class Meeting:
    title: str
    time: str = ""
    participants: List[str] = field(default_factory=list)
    details: str = ""


@dataclass
class ParsedMeetings:
    meetings: List[Meeting]
    fully_parsed: bool


def _after_marker(line: str, marker: str) -> str:
    # Last occurrence wins, matching a greedy ".*Marker:" strip.
    return line.rsplit(marker, 1)[1].strip()


def _split_names(text: str) -> List[str]:
    return [name.strip() for name in text.split(",") if name.strip()]


def parse_meetings_detailed(text: Optional[str]) -> ParsedMeetings:
    meetings: List[Meeting] = []
    current: Optional[Meeting] = None
    complete = True

    for line in (text or "").splitlines():
        if RE_RECORD.match(line):
            if current is not None:
                meetings.append(current)
            title = RE_RECORD_PREFIX.sub("", line).strip()
            if not title:
                title = UNTITLED
                complete = False
            current = Meeting(title=title)
        elif current is not None and TIME_MARKER in line:
            current.time = _after_marker(line, TIME_MARKER)
        elif current is not None and PARTICIPANTS_MARKER in line:
            current.participants = _split_names(_after_marker(line, PARTICIPANTS_MARKER))
        elif line.strip():
            complete = False

    if current is not None:
        meetings.append(current)
    return ParsedMeetings(meetings=meetings, fully_parsed=complete)


def parse_meetings(text: Optional[str]) -> List[Meeting]:
    """Extract numbered meeting records; never raises, may return []."""
    return parse_meetings_detailed(text).meetings


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        pass
    fenced = RE_JSON_FENCE.search(text)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except ValueError as exc:
            raise ParseError(f"invalid JSON block: {exc}") from exc
    obj = RE_JSON_OBJECT.search(text)
    if obj:
        try:
            return json.loads(obj.group(0))
        except ValueError as exc:
            raise ParseError(f"invalid JSON object: {exc}") from exc
    raise ParseError("no JSON found in response")


def extract_json(text: Optional[str]) -> Optional[Any]:
    """Pull a JSON value out of an answer: whole text, ```json fence, or {...} span.

    Returns None when nothing parses.
    """
    if not text:
        return None
    try:
        return _parse_json(text)
    except ParseError as exc:
        LOG.debug("could not parse response as JSON: %s", exc)
        return None
