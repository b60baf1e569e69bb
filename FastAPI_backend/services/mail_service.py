import smtplib
import structlog
from email.message import EmailMessage
from typing import Optional

from config import settings
from services.exceptions import NotificationError

logger = structlog.get_logger(__name__)


class Mailer:
    """SMTP client for emergency notifications, constructed once at startup."""

    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 sender: Optional[str] = None, use_tls: bool = True, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "Mailer":
        return cls(
            host=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            user=settings.EMAIL_USER,
            password=settings.EMAIL_PASS,
            sender=settings.EMAIL_FROM,
            use_tls=settings.EMAIL_USE_TLS,
        )

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> bool:
        message = self.build_message(to, subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send mail to {to}: {e}") from e

        logger.info("Mail sent", to=to, subject=subject)
        return True
