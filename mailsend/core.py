import logging
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from smtplib import SMTP, SMTP_SSL, SMTPException
from typing import Callable, Iterable, Union

from .config import MailConfiguration
from .content import MailContent
from .errors import ConnectionFailed, DeliveryFailed, InvalidAddress
from .utils import parse_mailbox

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


@dataclass
class DeliveryReport:
    """Outcome of sending one message to a recipient list.

    Attributes:
        sent (list[str]): Recipients the server accepted, in send order.
        failed (list[DeliveryFailed]): Recipients that could not be sent to.
    """
    sent: list[str] = field(default_factory=list)
    failed: list[DeliveryFailed] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.sent)

    @property
    def total(self) -> int:
        return len(self.sent) + len(self.failed)

    @property
    def ok(self) -> bool:
        """True if no recipient failed."""
        return not self.failed


class MailSender:
    """Sends one fixed message to a list of recipients over SMTP.

    All recipients share a single authenticated session. Every recipient gets
    an individual message so addresses are never disclosed to each other.

    Example:
        config = load_config("mailsend.toml")
        content = parse_mail_content("announcement.txt")
        sender = MailSender(config)
        report = sender.send(["a@example.com", "b@example.com"], content)
        print(report.succeeded, len(report.failed))
    """

    def __init__(self, config: MailConfiguration):
        """Initializes the sender with the server and identity settings.

        Args:
            config (MailConfiguration): Loaded configuration. The sender and
                reply-to addresses are expected to be valid already.
        """
        self.config = config

    def compose(self, recipient: str, content: MailContent) -> EmailMessage:
        """Builds the plain-text message for one recipient.

        Args:
            recipient (str): Destination address.
            content (MailContent): Subject and body shared by the run.

        Returns:
            EmailMessage: Message with From, Reply-To, To and Subject set.

        Raises:
            InvalidAddress: If `recipient` cannot be parsed as one address.
        """
        try:
            parse_mailbox(recipient)
        except ValueError as e:
            raise InvalidAddress(recipient, str(e))

        message = EmailMessage()
        message["From"] = self.config.sender
        message["Reply-To"] = self.config.reply_to
        message["To"] = recipient
        message["Subject"] = content.subject
        message.set_content(content.body)
        return message

    def check_recipients(self, recipients: Iterable[str]) -> tuple[list[str], list[DeliveryFailed]]:
        """Splits recipients into parseable addresses and failures.

        Returns:
            tuple[list[str], list[DeliveryFailed]]: Valid addresses in their
            original order, and one failure per invalid address.
        """
        valid = []
        invalid = []
        for recipient in recipients:
            try:
                parse_mailbox(recipient)
            except ValueError as e:
                invalid.append(DeliveryFailed(recipient, InvalidAddress(recipient, str(e))))
            else:
                valid.append(recipient)
        return valid, invalid

    def _connect(self) -> Union[SMTP, SMTP_SSL]:
        """Establishes an authenticated, encrypted SMTP connection.

        Port 465 uses implicit TLS (`SMTP_SSL`); any other port connects in
        plain text and upgrades with STARTTLS before logging in.

        Returns:
            Union[SMTP, SMTP_SSL]: Authenticated SMTP connection object.

        Raises:
            ConnectionFailed: If connection, TLS negotiation or
                authentication fails.
        """
        server = f"{self.config.mailserver}:{self.config.port}"
        context = ssl.create_default_context()
        implicit_tls = self.config.port == IMPLICIT_TLS_PORT

        logger.debug(f"Connecting to {server} ({'TLS' if implicit_tls else 'STARTTLS'})")
        try:
            if implicit_tls:
                smtp = SMTP_SSL(
                    self.config.mailserver, self.config.port,
                    timeout=self.config.timeout, context=context,
                )
            else:
                smtp = SMTP(self.config.mailserver, self.config.port, timeout=self.config.timeout)
        except (SMTPException, OSError) as e:
            raise ConnectionFailed(server, e) from e

        try:
            if not implicit_tls:
                smtp.starttls(context=context)
            smtp.login(self.config.username, self.config.password)
        except (SMTPException, OSError) as e:
            smtp.close()
            raise ConnectionFailed(server, e) from e

        logger.info(f"Logged in to {server} as {self.config.username}")
        return smtp

    def _disconnect(self, smtp: Union[SMTP, SMTP_SSL]) -> None:
        """Ends the session. A failed QUIT only closes the socket."""
        try:
            smtp.quit()
        except (SMTPException, OSError) as e:
            logger.warning(f"Mail server did not close the session cleanly: {e}")
            smtp.close()

    def send(
        self,
        recipients: Iterable[str],
        content: MailContent,
        on_attempt: Callable[[str], None] | None = None,
    ) -> DeliveryReport:
        """Sends the message to every recipient, in order.

        A recipient that cannot be composed or is rejected by the server is
        recorded in the report and the remaining recipients are still sent.
        Nothing is retried. Errors while closing the session after the last
        recipient are logged and do not affect the report.

        Args:
            recipients (Iterable[str]): Destination addresses.
            content (MailContent): Subject and body shared by all messages.
            on_attempt (Callable[[str], None], optional): Called with each
                recipient once its send has succeeded or failed.

        Returns:
            DeliveryReport: Which recipients were sent and which failed.

        Raises:
            ConnectionFailed: If the SMTP session cannot be opened. No
                message has been sent in that case.
        """
        report = DeliveryReport()

        smtp = self._connect()
        try:
            for recipient in recipients:
                try:
                    message = self.compose(recipient, content)
                    smtp.send_message(message)
                except (InvalidAddress, SMTPException, OSError) as e:
                    failure = DeliveryFailed(recipient, e)
                    logger.error(str(failure))
                    report.failed.append(failure)
                else:
                    logger.info(f"Sent mail to {recipient}")
                    report.sent.append(recipient)
                if on_attempt:
                    on_attempt(recipient)
        finally:
            self._disconnect(smtp)

        logger.info(f"Delivery finished: {report.succeeded} sent, {len(report.failed)} failed")
        return report
