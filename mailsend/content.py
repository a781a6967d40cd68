"""Parsing of the mail text file and the recipients file.

The text file holds the subject, a separator line (blank or exactly ``---``)
and the body::

    Quarterly update
    ---
    Hello everyone,
    ...
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ContentFileNotFound, ContentMalformed, RecipientsFileNotFound
from .utils import read_text_file

logger = logging.getLogger(__name__)

SEPARATOR = "---"
COMMENT_PREFIX = "#"


@dataclass(frozen=True)
class MailContent:
    """Subject and body shared by every recipient of a run."""
    subject: str
    body: str

    def __str__(self) -> str:
        return f"{self.subject}\n{SEPARATOR}\n{self.body}"


def _is_separator(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped == SEPARATOR


def split_mail_content(text: str) -> MailContent:
    """Splits raw text into subject and body.

    Leading blank lines are ignored. Every line up to the first separator
    belongs to the subject; a subject spread over several lines is joined
    into one line with single spaces. Everything after the separator is the
    body, with surrounding whitespace trimmed.

    Args:
        text (str): Content of a mail text file.

    Returns:
        MailContent: The parsed subject and body.

    Raises:
        ContentMalformed: If the text is empty or has no separator line.

    Example:
        >>> split_mail_content("Hello\\n\\nWorld")
        MailContent(subject='Hello', body='World')
    """
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)

    if not lines:
        raise ContentMalformed(
            "Premature end of content file. Content file needs to have format: "
            "Subject line, blank line, body."
        )

    for index, line in enumerate(lines):
        if _is_separator(line):
            break
    else:
        raise ContentMalformed(
            "Line separator missing. Subject header and body must be separated "
            "by a blank line or three dashes (---)."
        )

    if index == 0:
        raise ContentMalformed(
            "Subject line missing. The first line of the content file must be "
            "the subject, not a separator."
        )

    subject_lines =[line.strip() for line in lines[:index]]
    if len(subject_lines) > 1:
        logger.debug(f"Joining {len(subject_lines)} subject lines into one")
    subject = " ".join(subject_lines)
    body = "\n".join(lines[index + 1:]).strip()

    return MailContent(subject=subject, body=body)


def parse_mail_content(path: Path | str) -> MailContent:
    """Reads a mail text file and splits it into subject and body.

    Raises:
        ContentFileNotFound: If there is no file at `path`.
        ContentMalformed: If the file is empty, not UTF-8, or lacks a
            separator between subject and body.
    """
    path = Path(path)
    try:
        text = read_text_file(path, ContentFileNotFound)
    except UnicodeDecodeError as e:
        raise ContentMalformed(f"file is not valid UTF-8 ({e})", path)

    try:
        content = split_mail_content(text)
    except ContentMalformed as e:
        raise e.with_path(path)

    if not content.body:
        logger.warning(f"Mail content file {path} has an empty body")
    logger.info(f"Parsed mail content from {path}: subject {content.subject!r}")
    return content


def parse_recipients(path: Path | str) -> list[str]:
    """Reads recipient addresses, one per line.

    Blank lines and lines starting with ``#`` are skipped. Order is kept and
    duplicates are not removed.

    Raises:
        RecipientsFileNotFound: If there is no file at `path`.
    """
    path = Path(path)
    text = read_text_file(path, RecipientsFileNotFound)

    recipients = []
    for line in text.splitlines():
        address = line.strip()
        if not address or address.startswith(COMMENT_PREFIX):
            continue
        recipients.append(address)

    logger.info(f"Read {len(recipients)} recipient(s) from {path}")
    return recipients
