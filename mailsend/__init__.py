"""mailsend package initialization module.

This package sends one plain-text message to every address in a
recipients file through an authenticated, encrypted SMTP session. The
message comes from a text file (subject, separator line, body) and the
server settings from a TOML configuration file.

Modules:
    config (module): Loads and validates the SMTP configuration.
    content (module): Parses the mail text file and the recipients file.
    core (module): Composes and sends the messages.
    preview (module): Renders the run preview and delivery report.
    cli (module): Command-line entry point.

Example:
    from mailsend import MailSender, load_config, parse_mail_content, parse_recipients

    config = load_config("mailsend.toml")
    content = parse_mail_content("announcement.txt")
    report = MailSender(config).send(parse_recipients("recipients.txt"), content)
"""

__version__ = "0.1.0"

from .config import MailConfiguration, load_config, resolve_config_path
from .content import MailContent, parse_mail_content, parse_recipients
from .core import DeliveryReport, MailSender

__all__ = [
    "DeliveryReport",
    "MailConfiguration",
    "MailContent",
    "MailSender",
    "load_config",
    "parse_mail_content",
    "parse_recipients",
    "resolve_config_path",
]
