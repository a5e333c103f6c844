# qairoz/utils/email.py
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Callable, Dict, Optional

import requests
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To, Email, HtmlContent, PlainTextContent, MailSettings, SandBoxMode

from qairoz import config

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Qairoz - Email Verification OTP"
WELCOME_SUBJECT = "Welcome to Qairoz - Registration Successful!"

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="text-align: center; margin-bottom: 30px;">
    <h1 style="color: #1f2937; margin-bottom: 10px;">Qairoz</h1>
    <p style="color: #6b7280; margin: 0;">Inter-College Championships</p>
  </div>
  <div style="background: #f9fafb; border-radius: 12px; padding: 30px; text-align: center;">
    {body}
  </div>
  <div style="text-align: center; margin-top: 30px; padding-top: 20px; border-top: 1px solid #e5e7eb;">
    <p style="color: #9ca3af; font-size: 12px; margin: 0;">
      &copy; Qairoz - Inter-College Championships. All rights reserved.
    </p>
  </div>
</div>
"""


# ---------------- Templates ----------------
def render_otp_email(code: str, expires_minutes: int) -> Dict[str, str]:
    text = f"Your Qairoz verification code is: {code}. This code will expire in {expires_minutes} minutes."
    body = f"""
    <h2 style="color: #1f2937; margin-bottom: 20px;">Email Verification</h2>
    <p style="color: #4b5563; margin-bottom: 30px; font-size: 16px;">
      Please use the following OTP to verify your email address:
    </p>
    <div style="background: white; border: 2px solid #e5e7eb; border-radius: 8px; padding: 20px; margin: 20px 0;">
      <div style="font-size: 32px; font-weight: bold; color: #1f2937; letter-spacing: 4px;">{code}</div>
    </div>
    <p style="color: #6b7280; font-size: 14px; margin-top: 20px;">
      This OTP will expire in {expires_minutes} minutes. If you didn't request this, please ignore this email.
    </p>
    """
    return {"subject": OTP_SUBJECT, "text": text, "html": _LAYOUT.format(body=body)}


def render_welcome_email(college_name: str) -> Dict[str, str]:
    text = (
        f"Welcome to Qairoz! {college_name} has been successfully registered. "
        "You can now login to your dashboard and start adding students."
    )
    body = f"""
    <h2 style="color: #1f2937; margin-bottom: 20px;">Welcome aboard!</h2>
    <p style="color: #4b5563; font-size: 16px;">
      <strong>{college_name}</strong> has been successfully registered.
    </p>
    <p style="color: #4b5563; font-size: 16px;">
      You can now login to your dashboard and start adding students.
    </p>
    """
    return {"subject": WELCOME_SUBJECT, "text": text, "html": _LAYOUT.format(body=body)}


# ---------------- EmailJS ----------------
def _emailjs_configured() -> bool:
    return bool(config.EMAILJS_SERVICE_ID and config.EMAILJS_TEMPLATE_ID and config.EMAILJS_PUBLIC_KEY)


def send_via_emailjs(to_email: str, subject: str, html: str, text: str, extra: Dict[str, Any]) -> bool:
    """
    Send through an EmailJS template. The template receives
    to_email, subject, message, otp_code and from_name.
    """
    payload = {
        "service_id": config.EMAILJS_SERVICE_ID,
        "template_id": config.EMAILJS_TEMPLATE_ID,
        "user_id": config.EMAILJS_PUBLIC_KEY,
        "template_params": {
            "to_email": to_email,
            "subject": subject,
            "message": text,
            "otp_code": extra.get("otp_code", ""),
            "from_name": config.EMAIL_FROM_NAME,
        },
    }
    if config.EMAILJS_PRIVATE_KEY:
        payload["accessToken"] = config.EMAILJS_PRIVATE_KEY

    resp = requests.post(config.EMAILJS_API_URL, json=payload, timeout=config.EMAIL_TIMEOUT_SECONDS)
    if resp.status_code == 200:
        return True
    logger.warning("EmailJS returned %s: %s", resp.status_code, resp.text)
    return False


# ---------------- Resend ----------------
def _resend_configured() -> bool:
    return bool(config.RESEND_API_KEY and config.RESEND_FROM_EMAIL)


def send_via_resend(to_email: str, subject: str, html: str, text: str, extra: Dict[str, Any]) -> bool:
    payload = {
        "from": config.RESEND_FROM_EMAIL,
        "to": [to_email],
        "subject": subject,
        "html": html,
        "text": text,
    }
    resp = requests.post(
        config.RESEND_API_URL,
        json=payload,
        headers={
            "Authorization": f"Bearer {config.RESEND_API_KEY}",
            "Accept": "application/json",
        },
        timeout=config.EMAIL_TIMEOUT_SECONDS,
    )
    if 200 <= resp.status_code < 300:
        return True
    logger.warning("Resend returned %s: %s", resp.status_code, resp.text)
    return False


# ---------------- Gmail (SMTP) ----------------
def _gmail_configured() -> bool:
    return bool(config.GMAIL_USER and config.GMAIL_APP_PASSWORD)


def send_via_gmail(to_email: str, subject: str, html: str, text: str, extra: Dict[str, Any]) -> bool:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{config.EMAIL_FROM_NAME} <{config.GMAIL_USER}>"
    msg["To"] = to_email
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    with smtplib.SMTP(config.GMAIL_SMTP_HOST, config.GMAIL_SMTP_PORT, timeout=config.EMAIL_TIMEOUT_SECONDS) as server:
        server.starttls()
        server.login(config.GMAIL_USER, config.GMAIL_APP_PASSWORD)
        server.sendmail(config.GMAIL_USER, [to_email], msg.as_string())
    return True


# ---------------- SendGrid ----------------
def _sendgrid_configured() -> bool:
    return bool(config.SENDGRID_API_KEY and config.SENDGRID_FROM_EMAIL)


def send_via_sendgrid(to_email: str, subject: str, html: str, text: str, extra: Dict[str, Any]) -> bool:
    message = Mail(
        from_email=Email(config.SENDGRID_FROM_EMAIL, config.EMAIL_FROM_NAME),
        to_emails=To(to_email),
        subject=subject,
        plain_text_content=PlainTextContent(text),
        html_content=HtmlContent(html),
    )
    # Sandbox mode available for dev (does not deliver)
    if config.SENDGRID_SANDBOX:
        mail_settings = MailSettings()
        mail_settings.sandbox_mode = SandBoxMode(True)
        message.mail_settings = mail_settings

    client = SendGridAPIClient(config.SENDGRID_API_KEY)
    resp = client.send(message)
    code_resp = resp.status_code if resp is not None else None
    # SendGrid returns 202 on success, treat 200/202 as ok
    if code_resp in (200, 202):
        return True
    logger.warning("SendGrid returned non-2xx: %s %s", code_resp, getattr(resp, "body", ""))
    return False


SendFn = Callable[[str, str, str, str, Dict[str, Any]], bool]

PROVIDERS: Dict[str, Dict[str, Callable]] = {
    "emailjs": {"configured": _emailjs_configured, "send": send_via_emailjs},
    "resend": {"configured": _resend_configured, "send": send_via_resend},
    "gmail": {"configured": _gmail_configured, "send": send_via_gmail},
    "sendgrid": {"configured": _sendgrid_configured, "send": send_via_sendgrid},
}


def configured_providers() -> list:
    """Provider names in EMAIL_PROVIDERS order that have credentials set."""
    names = []
    for name in config.EMAIL_PROVIDERS:
        provider = PROVIDERS.get(name)
        if provider is None:
            logger.warning("Unknown email provider in EMAIL_PROVIDERS: %s", name)
            continue
        if provider["configured"]():
            names.append(name)
    return names


def send_email(
    to_email: str,
    subject: str,
    html: str,
    text: Optional[str] = None,
    **extra: Any,
) -> Optional[str]:
    """
    Deliver one message through the first provider that accepts it.
    Returns the provider name, or None if every provider failed.
    Provider errors are logged, never raised.
    """
    if not to_email:
        logger.error("Invalid recipient email: %r", to_email)
        return None

    text = text or subject
    providers = configured_providers()
    if not providers:
        logger.error("No email provider configured (checked: %s)", ", ".join(config.EMAIL_PROVIDERS))
        return None

    for name in providers:
        send: SendFn = PROVIDERS[name]["send"]
        try:
            if send(to_email, subject, html, text, extra):
                logger.info("Email '%s' sent to %s via %s", subject, to_email, name)
                return name
        except Exception as e:
            logger.exception("Email provider %s failed for %s: %s", name, to_email, e)
        logger.info("Falling back from email provider %s", name)

    logger.error("All email methods failed for %s", to_email)
    return None


def send_otp_email(to_email: str, code: str, expires_minutes: Optional[int] = None) -> bool:
    expires_minutes = expires_minutes or config.OTP_EXPIRE_MINUTES
    content = render_otp_email(code, expires_minutes)
    return send_email(to_email, content["subject"], content["html"], content["text"], otp_code=code) is not None


def send_welcome_email(to_email: str, college_name: str) -> bool:
    content = render_welcome_email(college_name)
    return send_email(to_email, content["subject"], content["html"], content["text"]) is not None
