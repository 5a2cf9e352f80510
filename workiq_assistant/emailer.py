"""Hand a rendered HTML report to an SMTP server."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

from core.cli_errors import ConfigError

from .config import WorkIQSettings

LOG = logging.getLogger(__name__)

SMTP_HINT = "Set SMTP_HOST, SMTP_PORT, SMTP_USER and SMTP_PASS (environment or .env)"


def build_message(sender: str, recipient: str, subject: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content("This message contains an HTML report; view it in an HTML-capable client.")
    msg.add_alternative(html, subtype="html")
    return msg


def send_html_email(
    settings: WorkIQSettings,
    recipient: str,
    subject: str,
    html: str,
    smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
) -> None:
    """Send ``html`` to ``recipient`` over SMTPS using the SMTP_* settings."""
    if not (settings.smtp_host and settings.smtp_user and settings.smtp_pass):
        raise ConfigError("Email not configured", hint=SMTP_HINT)
    factory = smtp_factory or smtplib.SMTP_SSL
    msg = build_message(settings.smtp_user, recipient, subject, html)
    with factory(settings.smtp_host, settings.smtp_port) as smtp:
        smtp.login(settings.smtp_user, settings.smtp_pass)
        smtp.send_message(msg)
    LOG.info("Report emailed to: %s", recipient)
