import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from tracker.config import settings
from tracker.exceptions import EmailDeliveryError
from tracker.utils.logger import get_logger

logger = get_logger("email")


async def send_email_async(to_email: str, subject: str, html: str):
    """
    Send an HTML email over SMTP with STARTTLS.

    Raises EmailDeliveryError when the transport fails so callers can run
    their compensating action. When no SMTP host is configured the message
    is only logged.
    """
    if not settings.EMAIL_HOST:
        logger.warning("Email skipped, SMTP not configured: %s -> %s", subject[:50], to_email)
        return

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html, "html"))

    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            username=settings.EMAIL_USER,
            password=settings.EMAIL_PASS,
            start_tls=True,
            timeout=10
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error("Email to %s failed: %s", to_email, e)
        raise EmailDeliveryError(f"Email could not be sent: {e}") from e

    logger.info("Email sent to %s: %s", to_email, subject)


def link_email_body(intro: str, url: str, outro: str) -> str:
    return f'{intro}<br><br>\n<a href="{url}">{url}</a><br><br>\n{outro}'
