"""
Patient notification delivery.

Notifiers report the outcome in a NotificationReceipt instead of raising, so a
delivery problem can never undo a write that already happened.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import List, Optional, Tuple
import asyncio
import logging
import smtplib
import socket
import ssl
import time

# Set up logging
logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECT = "Your Prescription is Ready"
RETRY_DELAY = 2  # seconds between attempts


@dataclass
class NotificationReceipt:
    """
    Outcome of one notification.

    Attributes:
        delivered: True when the channel accepted the message
        channel: Name of the delivery channel
        detail: Failure reason or delivery note
    """
    delivered: bool
    channel: str
    detail: Optional[str] = None


class Notifier(ABC):
    """Capability interface for patient notifications."""

    @abstractmethod
    async def notify(self, patient_id: str, message: str) -> NotificationReceipt:
        """Deliver message to the patient identified by patient_id."""


@dataclass
class LoggingNotifier(Notifier):
    """Writes notifications to the log and keeps them for inspection."""
    sent: List[Tuple[str, str]] = field(default_factory=list)

    async def notify(self, patient_id: str, message: str) -> NotificationReceipt:
        logger.info(f"Notify patient {patient_id}: {message}")
        self.sent.append((patient_id, message))
        return NotificationReceipt(delivered=True, channel="log")


class EmailNotifier(Notifier):
    """
    Sends notifications by SMTP to the configured recipients.

    Args:
        server: SMTP hostname
        port: SMTP port
        sender: From address
        recipients: Addresses that receive patient notifications
        username: SMTP login (optional)
        password: SMTP password (optional)
        starttls: Upgrade the connection with STARTTLS
        timeout: Socket timeout in seconds
        max_attempts: Delivery attempts for connection-level failures
    """

    channel = "email"

    def __init__(
        self,
        server: Optional[str],
        port: int,
        sender: Optional[str],
        recipients: List[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: int = 30,
        max_attempts: int = 1
    ):
        self.server = server
        self.port = port
        self.sender = sender
        self.recipients = list(recipients)
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)

    def missing_config(self) -> List[str]:
        missing = []
        if not self.server:
            missing.append("mail_server")
        if not self.sender:
            missing.append("mail_from")
        if not self.recipients:
            missing.append("notification_recipients")
        return missing

    def build_message(self, patient_id: str, message: str) -> MIMEMultipart:
        html_content = f"""
        <html>
            <body>
                <p>Patient reference: <strong>{escape(patient_id)}</strong></p>
                <p>{escape(message)}</p>
                <p>&copy; {datetime.now().year} Clinic Intake</p>
            </body>
        </html>
        """
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        msg["Subject"] = NOTIFICATION_SUBJECT
        msg.attach(MIMEText(message, "plain"))
        msg.attach(MIMEText(html_content, "html"))
        return msg

    def _send(self, msg: MIMEMultipart) -> NotificationReceipt:
        last_exception = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.info(f"Email send attempt {attempt}/{self.max_attempts} via {self.server}:{self.port}")
                with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                    server.ehlo()
                    if self.starttls:
                        server.starttls(context=ssl.create_default_context())
                        server.ehlo()
                    if self.username and self.password:
                        server.login(self.username, self.password)
                    server.send_message(msg)
                logger.info(f"Notification email sent on attempt {attempt}")
                return NotificationReceipt(delivered=True, channel=self.channel)

            except (smtplib.SMTPAuthenticationError, smtplib.SMTPRecipientsRefused) as e:
                logger.error(f"SMTP rejected the message: {str(e)}")
                last_exception = e
                break  # Don't retry credential or recipient errors

            except (smtplib.SMTPException, socket.timeout, OSError) as e:
                logger.warning(f"SMTP error on attempt {attempt}: {str(e)}")
                last_exception = e
                if attempt < self.max_attempts:
                    time.sleep(RETRY_DELAY)

        return NotificationReceipt(
            delivered=False,
            channel=self.channel,
            detail=f"Failed to send email after {attempt} attempt(s): {last_exception}"
        )

    async def notify(self, patient_id: str, message: str) -> NotificationReceipt:
        missing = self.missing_config()
        if missing:
            logger.error(f"Email notification skipped, missing configuration: {missing}")
            return NotificationReceipt(
                delivered=False,
                channel=self.channel,
                detail=f"Email configuration is incomplete: {', '.join(missing)}"
            )
        msg = self.build_message(patient_id, message)
        return await asyncio.to_thread(self._send, msg)
