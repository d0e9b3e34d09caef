from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from hostellink.core.config import settings
from hostellink.models.email_log import EmailLog

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def queue_email(db: Session, to_email: str, subject: str, html: str, related_booking_id: str = "") -> str:
    """Queue and attempt immediate send. Body is stored so the worker can retry on failure."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=html,
            status="queued",
            attempts=0,
            related_booking_id=related_booking_id,
        )
    )
    db.commit()

    log = db.get(EmailLog, eid)
    try:
        send_email(to_email, subject, html)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
    except Exception:
        # Worker will retry via process_email_queue
        logger.warning("email %s to %s failed, queued for retry", eid, to_email, exc_info=True)
        log.status = "failed"
    log.attempts = (log.attempts or 0) + 1
    db.commit()
    return eid


def send_email(to_email: str, subject: str, html: str):
    """Send email via Resend if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.RESEND_API_KEY:
        _send_via_resend(to_email, subject, html)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_resend(to_email: str, subject: str, html: str):
    payload = {
        "from": settings.RESEND_FROM_EMAIL,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    r = requests.post(
        RESEND_URL,
        json=payload,
        headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"Resend error {r.status_code}: {r.text}")


def booking_confirmation_html(hostel_name: str, amount: int) -> str:
    cur = settings.CURRENCY_LABEL
    today = datetime.now(timezone.utc).strftime("%d %b %Y")
    return (
        "<h1>Booking Successful!</h1>"
        "<p>Thank you for booking with HostelLink.</p>"
        "<h2>Booking Details:</h2>"
        "<ul>"
        f"<li><strong>Hostel:</strong> {hostel_name}</li>"
        f"<li><strong>Date:</strong> {today}</li>"
        f"<li><strong>Payment:</strong> {cur} {amount:,}</li>"
        "</ul>"
        "<p>Your deposit is held in escrow until you confirm the room. "
        "The landlord will contact you shortly with further details.</p>"
        "<p>Best regards,<br>The HostelLink Team</p>"
    )


def send_booking_confirmation(db: Session, email: str, hostel_name: str, amount: int, booking_id: str = "") -> str:
    return queue_email(
        db,
        email,
        f"Booking Confirmation - {hostel_name}",
        booking_confirmation_html(hostel_name, amount),
        related_booking_id=booking_id,
    )


def process_pending_emails(db: Session, limit: int = 50, max_attempts: int = 5) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.body.isnot(None),
            EmailLog.body != "",
            EmailLog.attempts < max_attempts,
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        try:
            send_email(log.to_email, log.subject, log.body)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            sent += 1
        except Exception:
            logger.warning("retry of email %s failed", log.id, exc_info=True)
            log.status = "failed"
            failed += 1
        log.attempts = (log.attempts or 0) + 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
