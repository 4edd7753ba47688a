"""
Delivery of verification and password reset links.

EmailNotifier sends through SMTP using the settings from app.config.
ConsoleNotifier writes the link to the log and is used when SMTP is not
configured (development). Requests hand delivery to a daemon thread so the
response never waits on the mail server.
"""

import logging
import smtplib
import threading
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from app.config import Settings, get_settings
from app.models.account import Account, TokenKind

logger = logging.getLogger("latchkey.mail")

LINK_PATHS = {
    TokenKind.VERIFICATION: "/verify-email",
    TokenKind.RESET: "/reset-password",
}

SUBJECTS = {
    TokenKind.VERIFICATION: "Verify your email address",
    TokenKind.RESET: "Reset your password",
}


class Notifier(Protocol):
    def notify(self, kind: TokenKind, account: Account, token: str) -> None: ...


Dispatcher = Callable[[Callable[[], None]], None]


def deliver_inline(job: Callable[[], None]) -> None:
    job()


def deliver_in_background(job: Callable[[], None]) -> None:
    """Run a delivery job on a daemon thread."""
    threading.Thread(target=job, daemon=True).start()


def build_link(base_url: str, kind: TokenKind, token: str) -> str:
    return f"{base_url.rstrip('/')}{LINK_PATHS[kind]}?token={token}"


def _text_body(kind: TokenKind, display_name: str, link: str, settings: Settings) -> str:
    if kind is TokenKind.VERIFICATION:
        return f"""
Hi {display_name},

Please confirm your email address by opening the link below (expires in {settings.VERIFICATION_TOKEN_TTL_HOURS} hours):

{link}
        """.strip()
    return f"""
Hi {display_name},

We received a request to reset your password. Use the link below (expires in {settings.RESET_TOKEN_TTL_MINUTES} minutes, single use):

{link}

If you didn't request this, you can safely ignore this email.
    """.strip()


class EmailNotifier:
    """Sends token links by SMTP with STARTTLS."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def notify(self, kind: TokenKind, account: Account, token: str) -> None:
        """Send the link for ``kind``. SMTP errors propagate to the caller."""
        settings = self.settings
        link = build_link(settings.APP_BASE_URL, kind, token)
        sender = settings.MAIL_FROM or settings.SMTP_USERNAME

        msg = MIMEMultipart("alternative")
        msg["Subject"] = SUBJECTS[kind]
        msg["From"] = sender
        msg["To"] = account.email
        msg.attach(MIMEText(_text_body(kind, account.display_name, link, settings), "plain"))

        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS) as server:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(sender, account.email, msg.as_string())

        logger.info("%s email sent for account %s", kind.value, account.id)


class ConsoleNotifier:
    """Writes token links to the log instead of sending mail."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def notify(self, kind: TokenKind, account: Account, token: str) -> None:
        link = build_link(self.settings.APP_BASE_URL, kind, token)
        logger.warning("SMTP not configured - %s link for account %s: %s", kind.value, account.id, link)


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Get singleton notifier: SMTP when configured, console otherwise."""
    global _notifier
    if _notifier is None:
        settings = get_settings()
        _notifier = EmailNotifier(settings) if settings.smtp_configured else ConsoleNotifier(settings)
    return _notifier


def get_dispatcher() -> Dispatcher:
    """Delivery strategy for request handlers: off the request path."""
    return deliver_in_background
