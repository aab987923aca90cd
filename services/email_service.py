import os
import ssl
import time
import smtplib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from typing import Callable, Dict, Iterable, List, Optional

import requests

from db import SessionLocal
from models import EmailSubscriber, QueuedEmail
from utils.clock import utcnow

logger = logging.getLogger(__name__)

EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "smtp").lower()

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.office365.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER or "")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Prayer App")
EMAIL_REPLY_TO = os.getenv("EMAIL_REPLY_TO", EMAIL_FROM)

RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")

# Provider caps are per minute (Microsoft 365: ~30/min)
EMAIL_BATCH_SIZE = int(os.getenv("EMAIL_BATCH_SIZE", "30"))
EMAIL_BATCH_DELAY_SECONDS = float(os.getenv("EMAIL_BATCH_DELAY_SECONDS", "60"))
OUTBOX_MAX_ATTEMPTS = int(os.getenv("EMAIL_OUTBOX_MAX_ATTEMPTS", "3"))


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def _unique_recipients(addresses: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for raw in addresses or []:
        addr = (raw or "").strip()
        if not addr or addr.lower() in seen:
            continue
        seen.add(addr.lower())
        out.append(addr)
    return out


class EmailDispatcher:
    """
    Sends one message per recipient in fixed-size batches with a pause
    between batches. send() never raises; failures come back in the result.
    Subclasses implement _deliver() for a concrete provider.
    """

    def __init__(
        self,
        batch_size: int = EMAIL_BATCH_SIZE,
        batch_delay: float = EMAIL_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self._sleep = sleep

    def send(self, to_addresses, subject: str, html_body: str, text_body: str) -> DispatchResult:
        if isinstance(to_addresses, str):
            to_addresses = [to_addresses]
        recipients = _unique_recipients(to_addresses)
        result = DispatchResult()
        if not recipients:
            return result

        total_batches = (len(recipients) + self.batch_size - 1) // self.batch_size
        for start in range(0, len(recipients), self.batch_size):
            batch = recipients[start:start + self.batch_size]
            if total_batches > 1:
                logger.info(
                    f"Sending batch {start // self.batch_size + 1}/{total_batches} ({len(batch)} emails)"
                )

            for recipient in batch:
                try:
                    self._deliver(recipient, subject, html_body, text_body)
                    result.sent += 1
                except Exception as e:
                    result.failed += 1
                    result.errors.append(f"{recipient}: {e}")
                    logger.warning(f"Failed to send '{subject}' to {recipient}: {e}")

            if start + self.batch_size < len(recipients) and self.batch_delay > 0:
                self._sleep(self.batch_delay)

        if result.failed:
            logger.warning(f"Email '{subject}': {result.sent} sent, {result.failed} failed")
        return result

    def _deliver(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        raise NotImplementedError


class SmtpDispatcher(EmailDispatcher):
    def _deliver(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        if not all([SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, EMAIL_FROM]):
            raise RuntimeError("SMTP configuration missing")

        msg = EmailMessage()
        msg["From"] = f"{EMAIL_FROM_NAME} <{EMAIL_FROM}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg["Reply-To"] = EMAIL_REPLY_TO
        msg.set_content(text_body or "")
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        context = ssl.create_default_context()
        if SMTP_PORT == 465:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=10) as server:
                server.login(SMTP_USER, SMTP_PASS)
                server.send_message(msg, from_addr=EMAIL_FROM, to_addrs=[to])
        else:
            with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as server:
                server.starttls(context=context)
                server.login(SMTP_USER, SMTP_PASS)
                server.send_message(msg, from_addr=EMAIL_FROM, to_addrs=[to])


class ResendDispatcher(EmailDispatcher):
    def _deliver(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        if not RESEND_API_KEY or not EMAIL_FROM:
            raise RuntimeError("Resend configuration missing")

        resp = requests.post(
            RESEND_API_URL,
            headers={
                "Authorization": f"Bearer {RESEND_API_KEY}",
                "Content-Type": "application/json",
            },
            json={
                "from": f"{EMAIL_FROM_NAME} <{EMAIL_FROM}>",
                "to": [to],
                "subject": subject,
                "html": html_body,
                "text": text_body,
                "reply_to": EMAIL_REPLY_TO,
            },
            timeout=10,
        )
        if resp.status_code >= 400:
            raise RuntimeError(f"Resend API error {resp.status_code}: {resp.text[:200]}")


_PROVIDERS = {
    "smtp": SmtpDispatcher,
    "resend": ResendDispatcher,
}
_dispatcher: Optional[EmailDispatcher] = None


def get_dispatcher() -> EmailDispatcher:
    global _dispatcher
    if _dispatcher is None:
        cls = _PROVIDERS.get(EMAIL_PROVIDER)
        if cls is None:
            logger.warning(f"Unknown EMAIL_PROVIDER '{EMAIL_PROVIDER}', falling back to smtp")
            cls = SmtpDispatcher
        _dispatcher = cls()
    return _dispatcher


def active_subscriber_emails() -> List[str]:
    with SessionLocal() as db:
        rows = (
            db.query(EmailSubscriber.email)
            .filter(EmailSubscriber.is_active == True)
            .order_by(EmailSubscriber.created_at)
            .all()
        )
    return [r.email for r in rows]


def send_template(
    to_addresses,
    template_key: str,
    variables: Dict[str, str],
    dispatcher: Optional[EmailDispatcher] = None,
) -> DispatchResult:
    """
    Render a template and send it. Notifications are best-effort: any error,
    including template lookup, is logged and reported in the result.
    """
    from services.email_templates import render_template

    dispatcher = dispatcher or get_dispatcher()
    try:
        subject, html_body, text_body = render_template(template_key, variables)
    except Exception as e:
        logger.warning(f"Could not render email template '{template_key}': {e}")
        return DispatchResult(failed=1, errors=[f"template {template_key}: {e}"])
    return dispatcher.send(to_addresses, subject, html_body, text_body)


def broadcast_to_subscribers(
    template_key: str,
    variables: Dict[str, str],
    now: Optional[datetime] = None,
) -> int:
    """
    Render a template once and queue a copy for every active subscriber.
    Nothing is sent here; deliver_queued_emails() drains the outbox on a
    timer, so a large list never holds up the caller. Returns the number
    of messages queued.
    """
    from services.email_templates import render_template

    try:
        subject, html_body, text_body = render_template(template_key, variables)
    except Exception as e:
        logger.warning(f"Could not render email template '{template_key}': {e}")
        return 0

    recipients = _unique_recipients(active_subscriber_emails())
    if not recipients:
        logger.info(f"No active subscribers for '{template_key}'")
        return 0

    queued_at = now or utcnow()
    with SessionLocal() as db:
        db.add_all([
            QueuedEmail(
                to_address=addr,
                template_key=template_key,
                subject=subject,
                html_body=html_body,
                text_body=text_body,
                created_at=queued_at,
            )
            for addr in recipients
        ])
        db.commit()

    logger.info(f"Queued '{template_key}' for {len(recipients)} subscribers")
    return len(recipients)


def deliver_queued_emails(
    limit: int = EMAIL_BATCH_SIZE,
    dispatcher: Optional[EmailDispatcher] = None,
    now: Optional[datetime] = None,
) -> DispatchResult:
    """
    Send up to `limit` unsent outbox messages, oldest first. The outbox
    timer fires once a minute, so `limit` is the per-minute send rate.
    A failed message is retried on later runs until OUTBOX_MAX_ATTEMPTS.
    """
    dispatcher = dispatcher or get_dispatcher()
    now = now or utcnow()
    result = DispatchResult()

    with SessionLocal() as db:
        rows = (
            db.query(QueuedEmail)
            .filter(
                QueuedEmail.sent_at.is_(None),
                QueuedEmail.attempts < OUTBOX_MAX_ATTEMPTS,
            )
            .order_by(QueuedEmail.created_at, QueuedEmail.id)
            .limit(limit)
            .all()
        )
        for row in rows:
            sent = dispatcher.send(row.to_address, row.subject, row.html_body, row.text_body)
            row.attempts += 1
            if sent.ok:
                row.sent_at = now
                row.last_error = None
                result.sent += 1
            else:
                row.last_error = "; ".join(sent.errors)
                result.failed += 1
                result.errors.extend(sent.errors)
        db.commit()

    if rows:
        logger.info(f"Outbox run: {result.sent} sent, {result.failed} failed")
    return result
