"""Example question sets, grouped by the kind of data they touch."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, TextIO, Tuple

from core.text_utils import truncate

from .client import WorkIQClient

PREVIEW_CHARS = 200


@dataclass(frozen=True)
class QuerySet:
    name: str
    icon: str
    questions: Tuple[str, ...]


QUERY_CATALOG: Dict[str, QuerySet] = {
    "calendar": QuerySet("CALENDAR QUERIES", "📅", (
        "What meetings do I have today?",
        "Show my calendar for tomorrow",
        "When is my next meeting with Sarah?",
        "Summarize my meetings this week",
    )),
    "email": QuerySet("EMAIL QUERIES", "📧", (
        "Show my emails from today",
        "What unread emails do I have?",
        "Summarize emails about the budget",
        "What did Alex say in their last email?",
    )),
    "documents": QuerySet("DOCUMENT QUERIES", "📄", (
        "What documents did I work on yesterday?",
        "Find documents about authentication",
        "What files did I share this week?",
        "Where is the Q4 planning document?",
    )),
    "teams": QuerySet("TEAMS QUERIES", "💬", (
        "Summarize messages in the Engineering channel today",
        "What did the team discuss in our last chat?",
        "Show recent activity in the Payment Integration channel",
    )),
    "people": QuerySet("PEOPLE QUERIES", "👥", (
        "Who works on the payment integration?",
        "What is Sarah's email address?",
        "Who is on the development team?",
        "Find people who know about OAuth",
    )),
    "context": QuerySet("CONTEXT QUERIES", "🔍", (
        "What were the action items from yesterday's standup?",
        "Summarize all activity about the payment project",
        "What decisions were made about authentication?",
        "Who has been discussing the budget recently?",
    )),
}

DEFAULT_CATEGORIES = ("calendar",)


def run_demo(
    client: WorkIQClient,
    categories: Iterable[str] = DEFAULT_CATEGORIES,
    out: Optional[TextIO] = None,
) -> int:
    """Print a preview of each answer; returns the number of failed queries."""
    out = out or sys.stdout
    failures = 0
    for key in categories:
        qs = QUERY_CATALOG[key]
        print(f"\n{qs.icon} {qs.name}\n" + "=" * 50, file=out)
        for env, question in zip(client.ask_many(list(qs.questions)), qs.questions):
            print(f"\nQ: {question}", file=out)
            if env.ok():
                if env.payload:
                    print(f"A: {truncate(env.payload, PREVIEW_CHARS)}", file=out)
            else:
                failures += 1
                print(f"  [ERROR] {env.message}", file=out)
    return failures
