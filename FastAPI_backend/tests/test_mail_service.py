import smtplib
from unittest.mock import patch

import pytest

from services.exceptions import NotificationError
from services.mail_service import Mailer


class TestMailer:

    @patch('services.mail_service.smtplib.SMTP')
    def test_send_uses_tls_and_login(self, mock_smtp):
        smtp = mock_smtp.return_value.__enter__.return_value
        mailer = Mailer("smtp.example.com", 587, user="alerts@example.com", password="secret")

        assert mailer.send("ops@example.com", "Subject", "Body") is True

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("alerts@example.com", "secret")
        message = smtp.send_message.call_args[0][0]
        assert message["To"] == "ops@example.com"
        assert message["From"] == "alerts@example.com"
        assert message["Subject"] == "Subject"
        assert message.get_content().strip() == "Body"

    @patch('services.mail_service.smtplib.SMTP')
    def test_send_without_credentials_skips_login(self, mock_smtp):
        smtp = mock_smtp.return_value.__enter__.return_value
        mailer = Mailer("localhost", 25, sender="safedrive@localhost", use_tls=False)

        mailer.send("ops@example.com", "Subject", "Body")

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    @pytest.mark.parametrize("error", [
        smtplib.SMTPAuthenticationError(535, b"bad credentials"),
        ConnectionRefusedError("refused"),
    ])
    @patch('services.mail_service.smtplib.SMTP')
    def test_failures_raise_notification_error(self, mock_smtp, error):
        mock_smtp.side_effect = error
        mailer = Mailer("smtp.example.com", 587)

        with pytest.raises(NotificationError):
            mailer.send("ops@example.com", "Subject", "Body")
