"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from unittest.mock import patch

import pytest

# Make the package importable without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

CONFIG_TOML = """\
mailserver = "smtp.example.com"
username = "mailer"
password = "s3cr3t-passw0rd"
sender = "news@example.com"
reply_to = "office@example.com"
"""


@pytest.fixture
def write_file(tmp_path):
    """Write `content` to `name` inside the test's temp directory."""
    def _write(name, content):
        path = tmp_path / name
        path.write_text(content, encoding='utf-8')
        return path
    return _write


@pytest.fixture
def config_file(write_file):
    return write_file('mailsend.toml', CONFIG_TOML)


@pytest.fixture
def smtp_ssl():
    """Patch the implicit-TLS SMTP client; the instance acts as its own context."""
    with patch('mailsend.core.SMTP_SSL') as smtp_cls:
        server = smtp_cls.return_value
        server.__enter__.return_value = server
        server.__exit__.return_value = False
        yield smtp_cls


@pytest.fixture
def smtp_plain():
    """Patch the plain SMTP client used with STARTTLS."""
    with patch('mailsend.core.SMTP') as smtp_cls:
        server = smtp_cls.return_value
        server.__enter__.return_value = server
        server.__exit__.return_value = False
        yield smtp_cls
