"""Outgoing email over SMTP."""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
import logging
import re
import smtplib

from travellers.config import get_settings
from travellers.errors import InternalError

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html_content: str) -> None:
    """Send an HTML email, raising InternalError if it cannot be delivered."""
    settings = get_settings()
    if not settings.smtp_host:
        logger.warning("SMTP not configured, cannot send email")
        raise InternalError("Failed to send the email.")

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email

    # Plain text fallback
    plain_text = html_content.replace("<br>", "\n").replace("</p>", "\n\n")
    plain_text = re.sub(r"<[^>]+>", "", plain_text)

    msg.attach(MIMEText(plain_text, "plain"))
    msg.attach(MIMEText(html_content, "html"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email: {e}")
        raise InternalError("Failed to send the email.") from e


def generate_reset_password_html(name: str, link: str) -> str:
    """Generate HTML content for the password reset email."""
    return f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #1e40af;">Reset your password</h1>
        <p>Hi {escape(name)},</p>
        <p>We received a request to reset your Travellers password. The link below is valid for a short time.</p>
        <p><a href="{escape(link, quote=True)}" style="color: #1e40af;">Reset password</a></p>
        <p style="margin-top: 24px; padding-top: 16px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 12px;">
            If you did not ask for this, you can ignore this email.
        </p>
    </body>
    </html>
    """
