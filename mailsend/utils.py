from email import policy
from email.errors import HeaderParseError
from email.headerregistry import Address
from pathlib import Path
from typing import Any, Callable, Iterable


def parse_mailbox(value: str) -> Address:
    """Parses a single address, with or without a display name.

    Accepts ``user@example.com`` as well as ``Name <user@example.com>``.

    Args:
        value (str): Address as written in a file.

    Returns:
        Address: The parsed address.

    Raises:
        ValueError: If `value` is not exactly one address with both a local
            part and a domain.
    """
    try:
        addresses = policy.default.header_factory("To", value).addresses
    except (HeaderParseError, IndexError, ValueError) as e:
        raise ValueError(f"unparseable address ({e})")

    if len(addresses) != 1:
        raise ValueError("expected exactly one address")
    address = addresses[0]
    if not address.username or not address.domain:
        raise ValueError("address needs a local part and a domain")
    return address


def read_text_file(path: Path, not_found: Callable[[Path], Exception]) -> str:
    """Reads a whole UTF-8 text file.

    Args:
        path (Path): File to read.
        not_found (Callable[[Path], Exception]): Factory for the exception
            raised when `path` does not point to a readable file.

    Returns:
        str: The file content.

    Raises:
        Exception: Whatever `not_found(path)` builds, if the file is missing
            or is a directory.
    """
    path = Path(path)
    if not path.is_file():
        raise not_found(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise not_found(path)


def validate_required_fields(data: dict, fields: Iterable[str]) -> None:
    """Checks that every field is present and holds a non-empty string.

    Args:
        data (dict): Parsed key-value data.
        fields (Iterable[str]): Names that must be present.

    Raises:
        ValueError: Naming the first missing or invalid field.
    """
    for name in fields:
        if name not in data:
            raise ValueError(f"missing required field '{name}'")
        value = data[name]
        if not isinstance(value, str):
            raise ValueError(f"field '{name}' must be a string")
        if not value.strip():
            raise ValueError(f"field '{name}' must not be empty")


def validate_port(value: Any) -> int:
    """Checks that `value` is a usable TCP port number.

    Raises:
        ValueError: If `value` is not an integer between 1 and 65535.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("field 'port' must be an integer")
    if not 1 <= value <= 65535:
        raise ValueError("field 'port' must be between 1 and 65535")
    return value


def validate_timeout(value: Any) -> float:
    """Checks that `value` is a positive number of seconds.

    Raises:
        ValueError: If `value` is not a positive int or float.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("field 'timeout' must be a number")
    if value <= 0:
        raise ValueError("field 'timeout' must be positive")
    return float(value)
