import logging
import smtplib
from email.message import EmailMessage

from sharelinks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="sharelinks.tasks.notifications.send_notification_email",
    ignore_result=True,
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def send_notification_email(
    self,
    to: str,
    subject: str,
    body: str,
) -> None:
    """Deliver a plain-text notification e-mail over SMTP."""
    from sharelinks.config import settings

    if not settings.smtp_host:
        logger.info("SMTP not configured; would send email to %s: %s", to, subject)
        return

    message = EmailMessage()
    message["From"] = settings.email_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("Failed to send notification email to %s: %s", to, e)
        try:
            self.retry(countdown=60 * (2 ** (self.request.retries or 0)))
        except self.MaxRetriesExceededError:
            logger.error("Notification email to %s exhausted retries", to)
        return
    logger.info("Sent notification email to %s", to)
