"""Human-readable summaries printed before and after a run."""

from jinja2 import Template  # type: ignore

from .config import MailConfiguration
from .content import MailContent
from .core import DeliveryReport
from .errors import DeliveryFailed

PREVIEW_TEMPLATE = """\
Server:     {{ mailserver }}:{{ port }}
From:       {{ sender }}
Reply-To:   {{ reply_to }}
Recipients: {{ recipients | length }}
{% if verbose %}
{% for recipient in recipients %}
    {{ recipient }}
{% endfor %}
{% endif %}
{% if failures %}

Skipping {{ failures | length }} invalid address(es):
{% for failure in failures %}
    {{ failure.cause }}
{% endfor %}
{% endif %}

{{ content }}
"""

REPORT_TEMPLATE = """\
{% if report.ok %}
Successfully sent all {{ report.succeeded }} email(s).
{% else %}
Sent {{ report.succeeded }} of {{ report.total }} email(s), {{ report.failed | length }} failed:
{% for failure in report.failed %}
    {{ failure.recipient }}: {{ failure.cause }}
{% endfor %}
{% endif %}
"""


def render_preview(
    config: MailConfiguration,
    content: MailContent,
    recipients: list[str],
    failures: list[DeliveryFailed] | None = None,
    verbose: bool = False,
) -> str:
    """Describes what a run is about to send.

    Only the server, identity and message are rendered; the password is not
    passed to the template.

    Args:
        config (MailConfiguration): Loaded configuration.
        content (MailContent): Message shared by all recipients.
        recipients (list[str]): Addresses that will be sent to.
        failures (list[DeliveryFailed], optional): Addresses skipped because
            they could not be parsed.
        verbose (bool): List every recipient instead of only the count.

    Returns:
        str: The rendered preview.
    """
    return Template(PREVIEW_TEMPLATE, trim_blocks=True, lstrip_blocks=True).render(
        mailserver=config.mailserver,
        port=config.port,
        sender=config.sender,
        reply_to=config.reply_to,
        recipients=recipients,
        failures=failures or [],
        content=content,
        verbose=verbose,
    )


def render_report(report: DeliveryReport) -> str:
    """Summarises a finished run, listing each failed recipient."""
    return Template(REPORT_TEMPLATE, trim_blocks=True, lstrip_blocks=True).render(report=report)
