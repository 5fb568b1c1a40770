"""Outbound email over SMTP, with Jinja2 templates for HTML bodies."""

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from core.config import settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class MailService:
    """Sends transactional email. Failures are logged and reported as False."""

    def __init__(
        self,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_email: Optional[str] = None,
        smtp_password: Optional[str] = None,
        mail_from: Optional[str] = None,
        templates_dir: Path = TEMPLATES_DIR,
    ):
        self._smtp_server = smtp_server if smtp_server is not None else settings.SMTP_SERVER
        self._smtp_port = smtp_port or settings.SMTP_PORT
        self._smtp_email = smtp_email if smtp_email is not None else settings.SMTP_EMAIL
        self._smtp_password = (
            smtp_password if smtp_password is not None else settings.SMTP_PASSWORD
        )
        self._mail_from = mail_from or settings.MAIL_FROM or self._smtp_email
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._smtp_server and self._smtp_email and self._smtp_password)

    def send(self, email: str, subject: str, html_body: str) -> bool:
        if not self.is_configured:
            logger.warning(f"SMTP not configured, skipping email '{subject}' to {email}")
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._mail_from
        msg["To"] = email
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(self._smtp_server, self._smtp_port) as smtp:
                smtp.ehlo()
                smtp.starttls()
                smtp.login(self._smtp_email, self._smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {email}: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {email}")
        return True

    def render(self, template_name: str, variables: Dict[str, Any]) -> str:
        template = self._env.get_template(f"{template_name}.html")
        return template.render(**variables)

    def send_templated(
        self, email: str, template_name: str, variables: Dict[str, Any], subject: Optional[str] = None
    ) -> bool:
        try:
            html_body = self.render(template_name, variables)
        except TemplateNotFound:
            logger.error(f"Email template '{template_name}' not found")
            return False
        return self.send(email, subject or variables.get("subject", template_name), html_body)

    def send_otp_email(self, email: str, user_name: str, otp: str) -> bool:
        return self.send_templated(
            email,
            "otp-verification",
            {"userName": user_name, "otp": otp},
            subject="Your OTP Verification Code",
        )
