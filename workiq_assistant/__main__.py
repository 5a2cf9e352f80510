"""Work IQ Assistant CLI

Commands:
  ask        ask Work IQ one question
  demo       run the example question sets
  briefing   build today's briefing (text, markdown or html; optional email)
  prep       prepare briefs for upcoming meetings
  context    meeting, project and expert lookups
  verify     check the local setup
  cache      stats / clear
  config     show / init
"""
from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
