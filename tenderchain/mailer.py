import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER)
APP_URL = os.getenv("APP_URL", "http://localhost:3000")


class MailerError(RuntimeError):
    pass


def send_email(to: str, subject: str, html: str):
    """
    Deliver one HTML email through the configured SMTP relay.
    Any delivery problem, including a missing SMTP configuration, is raised as MailerError.
    """
    if not SMTP_USER or not SMTP_PASSWORD:
        raise MailerError("SMTP credentials are not configured.")

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = EMAIL_FROM
    msg["To"] = to
    msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailerError(f"Failed to send email to {to}: {exc}") from exc

    logger.info("Email sent to %s: %s", to, subject)


def send_verification_email(email: str, token: str, company_name: str):
    verify_url = f"{APP_URL}/verify-email?token={token}"
    html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563eb;">Verify your email</h2>
          <p>Hello {company_name},</p>
          <p>Thanks for signing up for TenderChain. Please confirm your email address:</p>
          <p><a href="{verify_url}" style="color: #2563eb;">{verify_url}</a></p>
          <p style="color: #666; font-size: 12px;">This link expires in 24 hours.</p>
        </div>
    """
    send_email(email, "Verify your TenderChain account", html)
