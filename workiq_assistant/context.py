"""Context lookups that combine several questions about one subject."""

from __future__ import annotations

from typing import Dict, Optional

from core.text_utils import contains_any

from .client import WorkIQClient

NO_RESULT_MARKERS = ("not found", "no results")


def _collect(client: WorkIQClient, queries: Dict[str, str]) -> Dict[str, Optional[str]]:
    keys = list(queries)
    envelopes = client.ask_many([queries[k] for k in keys])
    return {k: (env.payload if env.ok() else None) for k, env in zip(keys, envelopes)}


def meeting_context(client: WorkIQClient, meeting_id: str) -> Dict[str, Optional[str]]:
    """Details, participants, decisions, action items and documents of a meeting."""
    return _collect(client, {
        "details": f"Get details for meeting ID: {meeting_id}",
        "participants": f"Who participated in meeting {meeting_id}?",
        "decisions": f"What decisions were made in meeting {meeting_id}?",
        "action_items": f"What action items came from meeting {meeting_id}?",
        "documents": f"What documents were shared in meeting {meeting_id}?",
    })


def project_context(client: WorkIQClient, project: str) -> Dict[str, Optional[str]]:
    return _collect(client, {
        "meetings": f"Find meetings about {project} from the last month",
        "emails": f"Summarize emails about {project} from the last week",
        "documents": f"Find documents related to {project}",
        "decisions": f"What decisions were made about {project}?",
        "team": f"Who is working on {project}?",
    })


def find_expert(client: WorkIQClient, topic: str) -> str:
    """Join the useful answers about who knows ``topic``; '' when none."""
    envelopes = client.ask_many([
        f"Who has written documents about {topic}?",
        f"Who has led meetings about {topic}?",
        f"Who frequently discusses {topic} in emails?",
    ])
    found = [
        env.payload for env in envelopes
        if env.ok() and env.payload and not contains_any(env.payload, NO_RESULT_MARKERS)
    ]
    return "\n\n".join(found)
