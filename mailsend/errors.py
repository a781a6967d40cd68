"""Exceptions raised by mailsend.

Everything that stops a run before or while opening the SMTP session derives
from `MailsendError`. `DeliveryFailed` describes a single recipient and is
collected in a report instead of being raised to the caller.
"""

from pathlib import Path


class MailsendError(Exception):
    """Base class for fatal mailsend errors."""


class ConfigNotFound(MailsendError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Configuration file not found: {path}")


class ConfigMalformed(MailsendError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error parsing configuration file at {path}: {reason}")


class RecipientsFileNotFound(MailsendError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Recipients file not found: {path}")


class ContentFileNotFound(MailsendError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Mail content file not found: {path}")


class ContentMalformed(MailsendError):
    def __init__(self, reason: str, path: Path | None = None):
        self.reason = reason
        self.path = path
        where = f" at {path}" if path is not None else ""
        super().__init__(f"Error while parsing mail content file{where}: {reason}")

    def with_path(self, path: Path) -> "ContentMalformed":
        return ContentMalformed(self.reason, path)


class ConnectionFailed(MailsendError):
    def __init__(self, server: str, cause: Exception):
        self.server = server
        self.cause = cause
        super().__init__(f"Failed to connect or authenticate to SMTP server {server}: {cause}")


class InvalidAddress(ValueError):
    def __init__(self, address: str, reason: str = "unparseable address"):
        self.address = address
        super().__init__(f"Invalid email address: {address!r} ({reason})")


class DeliveryFailed(Exception):
    """A single recipient could not be sent to.

    Attributes:
        recipient (str): Address the message was meant for.
        cause (Exception): Underlying composition or transport error.
    """

    def __init__(self, recipient: str, cause: Exception):
        self.recipient = recipient
        self.cause = cause
        super().__init__(f"Could not send mail to {recipient}: {cause}")
