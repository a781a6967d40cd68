"""
Tests for message composition and delivery.
"""

from smtplib import (
    SMTPAuthenticationError,
    SMTPRecipientsRefused,
    SMTPResponseException,
    SMTPServerDisconnected,
)

import pytest

from mailsend.config import MailConfiguration
from mailsend.content import MailContent
from mailsend.core import DeliveryReport, MailSender
from mailsend.errors import ConnectionFailed, DeliveryFailed, InvalidAddress


@pytest.fixture
def config():
    return MailConfiguration(
        mailserver='smtp.example.com',
        username='mailer',
        password='s3cr3t-passw0rd',
        sender='news@example.com',
        reply_to='office@example.com',
    )


@pytest.fixture
def content():
    return MailContent(subject='Hello', body='World')


def sent_messages(smtp_cls):
    return [c.args[0] for c in smtp_cls.return_value.send_message.call_args_list]


class TestCompose:
    """Test building the outgoing email."""

    def test_headers_and_body(self, config, content):
        """Test sender, reply-to, recipient, subject and body are set."""
        message = MailSender(config).compose('a@example.com', content)

        assert message['From'] == 'news@example.com'
        assert message['Reply-To'] == 'office@example.com'
        assert message['To'] == 'a@example.com'
        assert message['Subject'] == 'Hello'
        assert message.get_content_type() == 'text/plain'
        assert message.get_content().strip() == 'World'

    def test_recipient_with_display_name(self, config, content):
        """Test a named recipient is accepted."""
        message = MailSender(config).compose('Ann Example <ann@example.com>', content)

        assert message['To'].addresses[0].addr_spec == 'ann@example.com'

    @pytest.mark.parametrize('recipient', ['not-an-address', 'a@example.com, b@example.com', ''])
    def test_invalid_recipient_raises(self, config, content, recipient):
        """Test addresses the email library cannot use are rejected."""
        with pytest.raises(InvalidAddress) as exc_info:
            MailSender(config).compose(recipient, content)

        assert exc_info.value.address == recipient


class TestCheckRecipients:
    """Test splitting recipients before sending."""

    def test_partitions_in_order(self, config):
        """Test valid addresses keep their order and invalid ones are reported."""
        valid, invalid = MailSender(config).check_recipients(
            ['a@example.com', 'broken', 'b@example.com']
        )

        assert valid == ['a@example.com', 'b@example.com']
        assert len(invalid) == 1
        assert invalid[0].recipient == 'broken'
        assert isinstance(invalid[0].cause, InvalidAddress)


class TestSend:
    """Test delivery over a mocked SMTP session."""

    def test_two_recipients_scenario(self, config, content, smtp_ssl):
        """Test one message per recipient, same subject and body, in order."""
        report = MailSender(config).send(['a@example.com', 'b@example.com'], content)

        messages = sent_messages(smtp_ssl)
        assert [m['To'] for m in messages] == ['a@example.com', 'b@example.com']
        assert all(m['Subject'] == 'Hello' for m in messages)
        assert all(m.get_content().strip() == 'World' for m in messages)
        assert report.sent == ['a@example.com', 'b@example.com']
        assert report.ok

    def test_single_authenticated_session(self, config, content, smtp_ssl):
        """Test the session is opened once with TLS and the configured login."""
        MailSender(config).send(['a@example.com', 'b@example.com', 'c@example.com'], content)

        smtp_ssl.assert_called_once()
        args, kwargs = smtp_ssl.call_args
        assert args == ('smtp.example.com', 465)
        assert kwargs['timeout'] == 30.0
        assert kwargs['context'] is not None
        smtp_ssl.return_value.login.assert_called_once_with('mailer', 's3cr3t-passw0rd')
        smtp_ssl.return_value.quit.assert_called_once()

    def test_attempts_one_send_per_line(self, config, content, smtp_ssl):
        """Test N recipients give exactly N send attempts."""
        recipients = [f'user{i}@example.com' for i in range(7)]

        report = MailSender(config).send(recipients, content)

        assert smtp_ssl.return_value.send_message.call_count == 7
        assert report.total == 7

    def test_other_port_uses_starttls(self, config, content, smtp_plain):
        """Test non-465 ports upgrade the plain connection before login."""
        config = MailConfiguration(**{**config.__dict__, 'port': 587, 'timeout': 5.0})

        MailSender(config).send(['a@example.com'], content)

        smtp_plain.assert_called_once_with('smtp.example.com', 587, timeout=5.0)
        server = smtp_plain.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with('mailer', 's3cr3t-passw0rd')
        server.send_message.assert_called_once()

    def test_failed_recipient_does_not_stop_the_rest(self, config, content, smtp_ssl):
        """Test a refused recipient is reported and later ones still sent."""
        refused = SMTPRecipientsRefused({'b@example.com': (550, b'No such user')})
        smtp_ssl.return_value.send_message.side_effect = [None, refused, None]

        report = MailSender(config).send(['a@example.com', 'b@example.com', 'c@example.com'], content)

        assert report.sent == ['a@example.com', 'c@example.com']
        assert len(report.failed) == 1
        failure = report.failed[0]
        assert isinstance(failure, DeliveryFailed)
        assert failure.recipient == 'b@example.com'
        assert failure.cause is refused
        assert not report.ok

    def test_invalid_address_is_a_delivery_failure(self, config, content, smtp_ssl):
        """Test an unparseable address fails only that recipient."""
        report = MailSender(config).send(['broken', 'a@example.com'], content)

        assert report.sent == ['a@example.com']
        assert isinstance(report.failed[0].cause, InvalidAddress)
        assert smtp_ssl.return_value.send_message.call_count == 1

    def test_disconnect_fails_remaining_recipients(self, config, content, smtp_ssl):
        """Test a dropped connection is recorded per recipient without retries."""
        smtp_ssl.return_value.send_message.side_effect = SMTPServerDisconnected('gone')

        report = MailSender(config).send(['a@example.com', 'b@example.com'], content)

        assert report.sent == []
        assert [f.recipient for f in report.failed] == ['a@example.com', 'b@example.com']
        assert smtp_ssl.return_value.send_message.call_count == 2

    def test_connection_error_raises(self, config, content, smtp_ssl):
        """Test an unreachable server is fatal."""
        smtp_ssl.side_effect = OSError('Connection refused')

        with pytest.raises(ConnectionFailed) as exc_info:
            MailSender(config).send(['a@example.com'], content)

        assert 'smtp.example.com' in str(exc_info.value)

    def test_login_error_closes_connection(self, config, content, smtp_ssl):
        """Test a rejected login is fatal and the socket is closed."""
        server = smtp_ssl.return_value
        server.login.side_effect = SMTPAuthenticationError(535, b'Authentication failed')

        with pytest.raises(ConnectionFailed):
            MailSender(config).send(['a@example.com'], content)

        server.close.assert_called_once()
        server.send_message.assert_not_called()

    @pytest.mark.parametrize('error', [
        SMTPResponseException(451, b'QUIT failed'),
        TimeoutError('timed out'),
    ])
    def test_failed_quit_keeps_report(self, config, content, smtp_ssl, caplog, error):
        """Test an error while ending the session is logged and the report still returned."""
        server = smtp_ssl.return_value
        server.quit.side_effect = error

        with caplog.at_level('WARNING'):
            report = MailSender(config).send(['a@example.com', 'b@example.com'], content)

        assert report.sent == ['a@example.com', 'b@example.com']
        assert report.ok
        server.close.assert_called_once()
        assert 'did not close the session cleanly' in caplog.text

    def test_on_attempt_called_per_recipient(self, config, content, smtp_ssl):
        """Test the callback sees every recipient, failed ones included."""
        smtp_ssl.return_value.send_message.side_effect = [None, SMTPServerDisconnected('gone')]
        attempted = []

        MailSender(config).send(['a@example.com', 'b@example.com'], content, on_attempt=attempted.append)

        assert attempted == ['a@example.com', 'b@example.com']

    def test_password_not_logged(self, config, content, smtp_ssl, caplog):
        """Test the secret never appears in log output."""
        with caplog.at_level('DEBUG'):
            MailSender(config).send(['a@example.com'], content)

        assert 's3cr3t-passw0rd' not in caplog.text


class TestDeliveryReport:
    """Test the delivery summary."""

    def test_counts(self):
        """Test totals over sent and failed recipients."""
        report = DeliveryReport(
            sent=['a@example.com'],
            failed=[DeliveryFailed('b@example.com', OSError('boom'))],
        )

        assert report.succeeded == 1
        assert report.total == 2
        assert not report.ok

    def test_empty_report_is_ok(self):
        assert DeliveryReport().ok
