"""Shared fake/mock objects for testing.

Centralized location for fakes used across test suites.

Modules:
    runner - FakeRunner / ConcurrencyRunner standing in for the Work IQ binary
    smtp   - FakeSMTP recording logins and sent messages
"""

from __future__ import annotations

from tests.fakes.runner import ConcurrencyRunner, FakeRunner, ok, missing
from tests.fakes.smtp import FakeSMTP

__all__ = [
    # Runner
    "FakeRunner",
    "ConcurrencyRunner",
    "ok",
    "missing",
    # SMTP
    "FakeSMTP",
]
