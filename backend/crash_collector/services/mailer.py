"""
SMTP mail transport for crash notifications.

Every message goes out over an encrypted, authenticated connection:

  smtp_security = "starttls"  plain connect, then STARTTLS (required; a server
                              that does not offer it is a delivery failure)
  smtp_security = "tls"       implicit TLS from the first byte (SMTP_SSL)

A new connection is opened for each message. No retries: any failure up to
the server accepting the message is reported to the caller once as
MailDeliveryError. Trouble while saying QUIT afterwards is only logged.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, parseaddr

from crash_collector.config import Settings
from crash_collector.exceptions import MailComposeError, MailDeliveryError
from crash_collector.models.notification import NotificationMessage

logger = logging.getLogger(__name__)


def _parse_mailbox(value: str) -> tuple[str, str]:
    """
    Split ``"Name <user@host>"`` or ``"user@host"`` into (name, address).

    Raises:
        MailComposeError: if no usable address can be found.
    """
    name, address = parseaddr(value)
    local, at, domain = address.partition("@")
    if not at or not local or not domain or "@" in domain:
        raise MailComposeError(f"Invalid mailbox: {value!r}")
    if any(ch.isspace() for ch in address):
        raise MailComposeError(f"Invalid mailbox: {value!r}")
    return name, address


class Mailer:
    """Delivers NotificationMessages to the configured recipient."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_message(self, notification: NotificationMessage) -> EmailMessage:
        """
        Turn a NotificationMessage into a MIME email.

        Raises:
            MailComposeError: on malformed addresses or header values
                (e.g. a subject containing a line break).
        """
        sender_name, sender_addr = _parse_mailbox(notification.sender)
        recipient_name, recipient_addr = _parse_mailbox(notification.recipient)

        msg = EmailMessage()
        try:
            msg["From"] = formataddr((sender_name, sender_addr))
            msg["To"] = formataddr((recipient_name, recipient_addr))
            msg["Subject"] = notification.subject
            msg.set_content(notification.body)
        except ValueError as e:
            raise MailComposeError(f"Could not prepare email: {e}") from e
        return msg

    def _connect(self) -> smtplib.SMTP:
        host = self.settings.smtp_host
        port = self.settings.smtp_port
        timeout = self.settings.smtp_timeout
        context = ssl.create_default_context()

        if self.settings.smtp_security == "tls":
            return smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)

        server = smtplib.SMTP(host, port, timeout=timeout)
        try:
            server.starttls(context=context)
        except Exception:
            server.close()
            raise
        return server

    def _disconnect(self, server: smtplib.SMTP) -> None:
        """
        Say QUIT and close. Runs after the message is accepted or the session
        failed, so errors here are logged and never reported as a failed send.
        """
        try:
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.debug(f"Ignoring error while closing SMTP connection: {e!r}")
            server.close()

    def send(self, notification: NotificationMessage) -> None:
        """
        Build and deliver one notification.

        Raises:
            MailComposeError: if the message cannot be built.
            MailDeliveryError: on connection, TLS, authentication or protocol
                failure.
        """
        msg = self.build_message(notification)
        _, sender_addr = _parse_mailbox(notification.sender)
        _, recipient_addr = _parse_mailbox(notification.recipient)

        # ssl.SSLError and socket errors are both OSError subclasses
        try:
            server = self._connect()
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"Could not send email: {e!r}") from e

        try:
            server.login(self.settings.smtp_user, self.settings.smtp_pass)
            server.send_message(msg, from_addr=sender_addr, to_addrs=[recipient_addr])
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"Could not send email: {e!r}") from e
        finally:
            self._disconnect(server)

        logger.debug(
            f"Delivered notification to {recipient_addr} via "
            f"{self.settings.smtp_host}:{self.settings.smtp_port}"
        )
