"""Loading of the SMTP server and identity settings.

The configuration is a TOML file with five required string keys::

    mailserver = "smtp.example.com"
    username = "mailer"
    password = "secret"
    sender = "News <news@example.com>"
    reply_to = "office@example.com"

`port` (default 465) and `timeout` in seconds (default 30) are optional.
"""

import logging
import sys
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

from .errors import ConfigMalformed, ConfigNotFound
from .utils import (
    parse_mailbox,
    read_text_file,
    validate_port,
    validate_required_fields,
    validate_timeout,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "mailsend.toml"
REQUIRED_FIELDS = ("mailserver", "username", "password", "sender", "reply_to")
DEFAULT_PORT = 465
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class MailConfiguration:
    """SMTP server and identity settings for one run.

    Attributes:
        mailserver: SMTP server hostname.
        username: Login name on the server.
        password: Login password. Left out of `repr` so it does not end up
            in logs or tracebacks.
        sender: `From` address.
        reply_to: `Reply-To` address.
        port: Server port. 465 uses implicit TLS, anything else STARTTLS.
        timeout: Socket timeout in seconds for the SMTP session.
    """
    mailserver: str
    username: str
    password: str = field(repr=False)
    sender: str
    reply_to: str
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT


def resolve_config_path(explicit_path: Path | str | None, executable_dir: Path | str) -> Path:
    """Picks the configuration file to load.

    An explicitly given path always wins, otherwise `mailsend.toml` next to
    the program is used. The filesystem is not touched.
    """
    if explicit_path is not None:
        return Path(explicit_path)
    return Path(executable_dir) / CONFIG_FILENAME


def default_executable_dir() -> Path:
    """Directory of the running program (the console script or module path)."""
    return Path(sys.argv[0]).resolve().parent


def load_config(path: Path | str) -> MailConfiguration:
    """Reads and validates a configuration file.

    Surrounding whitespace is stripped from every string field except
    `password`, which is used exactly as written.

    Args:
        path (Path | str): TOML file to load.

    Returns:
        MailConfiguration: The parsed settings.

    Raises:
        ConfigNotFound: If there is no file at `path`.
        ConfigMalformed: If the file is not valid TOML, or a required field
            is missing, empty or has the wrong type.
    """
    path = Path(path)
    logger.debug(f"Loading configuration from {path}")

    try:
        text = read_text_file(path, ConfigNotFound)
    except UnicodeDecodeError as e:
        raise ConfigMalformed(path, f"file is not valid UTF-8 ({e})")

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigMalformed(path, f"invalid TOML ({e})")

    try:
        validate_required_fields(data, REQUIRED_FIELDS)
        port = validate_port(data["port"]) if "port" in data else DEFAULT_PORT
        timeout = validate_timeout(data["timeout"]) if "timeout" in data else DEFAULT_TIMEOUT
    except ValueError as e:
        raise ConfigMalformed(path, str(e))

    for name in ("sender", "reply_to"):
        try:
            parse_mailbox(data[name])
        except ValueError as e:
            raise ConfigMalformed(path, f"field '{name}' is not a valid address: {e}")

    known = {f.name for f in fields(MailConfiguration)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys in {path}: {', '.join(unknown)}")

    config = MailConfiguration(
        mailserver=data["mailserver"].strip(),
        username=data["username"].strip(),
        password=data["password"],
        sender=data["sender"].strip(),
        reply_to=data["reply_to"].strip(),
        port=port,
        timeout=timeout,
    )
    logger.info(f"Loaded configuration for {config.username} on {config.mailserver}:{config.port}")
    return config
