import logging
import smtplib
import time
from datetime import timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings
from app.models.appointment import Appointment
from app.models.catalog import Branch, Topic

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Raises on any SMTP or socket failure."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        server.login(settings.smtp_user, settings.smtp_password)
        server.sendmail(settings.from_email, [to_email], msg.as_string())


def _html_escape(s: str | None) -> str:
    if not s:
        return ""
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def build_appointment_confirmation_html(
    appointment: Appointment,
    topic: Topic | None,
    branch: Branch | None,
) -> str:
    """Build HTML body for appointment confirmation."""
    start = appointment.slot_start
    end = start + timedelta(minutes=settings.slot_duration_minutes)
    date_str = start.strftime("%A, %B %d, %Y")
    slot_display = f"{start.strftime('%I:%M %p')} – {end.strftime('%I:%M %p')}"
    topic_name = _html_escape(topic.name if topic else appointment.topic_id)
    branch_name = _html_escape(branch.name if branch else appointment.branch_id)
    branch_address = _html_escape(branch.address if branch else "")
    reason_section = ""
    if appointment.reason:
        reason_section = f"""
        <p style="margin:0 0 16px 0;color:#374151;"><strong>Your notes:</strong></p>
        <p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{_html_escape(appointment.reason)}</p>
        """
    footer_contact = " &nbsp;·&nbsp; ".join(
        _html_escape(c) for c in (settings.contact_email, settings.contact_phone) if c
    )
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Appointment Confirmation</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="padding:32px 32px 24px 32px;">
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#016649;">Appointment Confirmed</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {_html_escape(appointment.name) or 'there'}, your appointment has been scheduled.</p>
              <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f9fafb;border-radius:8px;margin-bottom:24px;">
                <tr>
                  <td style="padding:20px 24px;">
                    <p style="margin:0 0 8px 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Topic</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{topic_name}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Date</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{date_str}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Time ({settings.slot_duration_minutes}-minute appointment)</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{slot_display}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Location</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{branch_name}</p>
                    <p style="margin:0;font-size:14px;color:#6b7280;">{branch_address}</p>
                  </td>
                </tr>
              </table>
              {reason_section}
              <p style="margin:0 0 8px 0;font-size:14px;color:#374151;">If you need to change or cancel, please contact the branch directly.</p>
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px 32px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0 0 4px 0;font-size:13px;font-weight:600;color:#111827;">{_html_escape(settings.site_name)}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">{footer_contact}</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def send_appointment_confirmation_email(
    appointment: Appointment,
    topic: Topic | None = None,
    branch: Branch | None = None,
) -> bool:
    """Compose and send the confirmation (call from background task).

    Tries at most ``notification_max_attempts`` times. Returns False when sending is
    disabled or every attempt failed; the booking stands either way.
    """
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping confirmation for %s", appointment.id)
        return False
    subject = f"{settings.site_name} – Appointment Confirmation"
    html = build_appointment_confirmation_html(appointment, topic, branch)
    attempts = max(1, settings.notification_max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            _send_email_sync(appointment.email, subject, html)
        except (smtplib.SMTPException, OSError) as e:
            if attempt == attempts:
                logger.exception(
                    "Giving up on confirmation email for %s after %d attempt(s): %s",
                    appointment.id,
                    attempts,
                    e,
                )
                return False
            logger.warning(
                "Confirmation email for %s failed (attempt %d/%d): %s",
                appointment.id,
                attempt,
                attempts,
                e,
            )
            time.sleep(settings.notification_retry_delay_seconds * attempt)
        else:
            logger.info("Confirmation email for %s sent to %s", appointment.id, appointment.email)
            return True
    return False
