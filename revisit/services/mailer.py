"""Email capability: SMTP delivery plus the confirmation and reminder templates."""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from revisit.config import Settings, get_settings

logger = logging.getLogger("revisit.mailer")

DEFAULT_PROBLEM_TITLE = "LeetCode Problem"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def confirmation_template(problem_title: Optional[str], problem_url: str, scheduled_time: str) -> EmailTemplate:
    title = escape(problem_title or DEFAULT_PROBLEM_TITLE)
    url = escape(problem_url, quote=True)
    return EmailTemplate(
        subject="LeetCode Reminder Confirmation",
        html=f"""
      <h2>Your LeetCode Reminder has been set!</h2>
      <p>Problem: {title}</p>
      <p>URL: <a href="{url}">{url}</a></p>
      <p>You will be reminded on: {escape(scheduled_time)}</p>
      <p>Keep coding!</p>
    """,
    )


def reminder_template(problem_title: Optional[str], problem_url: str) -> EmailTemplate:
    title = escape(problem_title or DEFAULT_PROBLEM_TITLE)
    url = escape(problem_url, quote=True)
    return EmailTemplate(
        subject="Time to Review Your LeetCode Problem!",
        html=f"""
      <h2>Time to review your LeetCode problem!</h2>
      <p>Problem: {title}</p>
      <p>URL: <a href="{url}">{url}</a></p>
      <p>Happy coding!</p>
    """,
    )


# ---------------------------------------------------------------------------
# SMTP transport
# ---------------------------------------------------------------------------

class SmtpMailer:
    """Sends HTML email over SMTP. Errors propagate to the caller."""

    def __init__(self, settings: Settings):
        self.host = settings.mail_host
        self.port = settings.mail_port
        self.username = settings.mail_user
        self.password = settings.mail_pass
        self.from_email = settings.sender_address
        self.use_tls = settings.mail_use_tls
        self.timeout = settings.delivery_timeout_seconds

    def send_sync(self, to_email: str, subject: str, html_content: str) -> None:
        """Blocking send; run it through `send` from async code."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email or ""
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

        logger.info("Email sent to %s", to_email)

    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        await asyncio.to_thread(self.send_sync, to_email, subject, html_content)


_mailer: Optional[SmtpMailer] = None


def get_mailer() -> SmtpMailer:
    global _mailer
    if _mailer is None:
        _mailer = SmtpMailer(get_settings())
    return _mailer


async def _attempt(to: str, template: EmailTemplate) -> Optional[Exception]:
    """Run one send and hand back its exception, so transport errors stay distinct from the deadline."""
    try:
        await get_mailer().send(to, template.subject, template.html)
    except Exception as e:
        return e
    return None


async def send_email(to: str, template: EmailTemplate, *, timeout: Optional[float] = None) -> DeliveryResult:
    """
    Deliver `template` to `to`, never raising.

    The attempt is bounded by `timeout` (defaults to DELIVERY_TIMEOUT_SECONDS);
    running out of time counts as a failed delivery.
    """
    limit = timeout if timeout is not None else get_settings().delivery_timeout_seconds
    try:
        error = await asyncio.wait_for(_attempt(to, template), timeout=limit)
    except asyncio.TimeoutError:
        logger.error("Error sending email to %s: timed out after %.1fs", to, limit)
        return DeliveryResult(success=False, error=f"Failed to send email: timed out after {limit:g}s")

    if error is not None:
        logger.error("Error sending email to %s: %s", to, error)
        return DeliveryResult(success=False, error=f"Failed to send email: {error}")
    return DeliveryResult(success=True)
