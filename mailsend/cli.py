"""Command-line entry point: send one text file to every address in a list."""

import argparse
import logging
import sys

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeRemainingColumn

from . import __version__
from .config import CONFIG_FILENAME, default_executable_dir, load_config, resolve_config_path
from .content import MailContent, parse_mail_content, parse_recipients
from .core import DeliveryReport, MailSender
from .errors import MailsendError
from .preview import render_preview, render_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FATAL = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailsend",
        description="Send the same plain-text email to every address in a recipients file.",
    )
    parser.add_argument(
        "-r", "--recipients-file", required=True,
        help="File containing email addresses (one address on each line)",
    )
    parser.add_argument(
        "-t", "--text-file", required=True,
        help="File with the subject on the first line, a blank or '---' line, then the body",
    )
    parser.add_argument(
        "-c", "--config-file", default=None,
        help=f"Path to the configuration file (default: {CONFIG_FILENAME} beside the program)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print what would be sent without connecting to the mail server",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Send without asking for confirmation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def confirm(prompt: str = "Proceed? [y/n] ") -> bool:
    """Asks until the user answers y or n. End of input counts as no."""
    while True:
        try:
            answer = input(prompt).strip()
        except EOFError:
            print()
            return False
        if answer in ("y", "Y"):
            return True
        if answer in ("n", "N"):
            return False
        print("Unexpected input.")


def send_with_progress(sender: MailSender, recipients: list[str], content: MailContent) -> DeliveryReport:
    """Sends while drawing a progress bar on stderr."""
    progress = Progress(
        TextColumn("[green]Sending"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=Console(stderr=True),
    )
    with progress:
        task_id = progress.add_task("send", total=len(recipients))
        return sender.send(recipients, content, on_attempt=lambda _: progress.advance(task_id))


def run(args: argparse.Namespace) -> int:
    try:
        content = parse_mail_content(args.text_file)
        recipients = parse_recipients(args.recipients_file)
        config = load_config(resolve_config_path(args.config_file, default_executable_dir()))
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read input file: {e}")
        return EXIT_FATAL

    sender = MailSender(config)
    valid, invalid = sender.check_recipients(recipients)

    print(
        f"Found {len(recipients)} email addresses. "
        f"{len(valid)} parsed successfully, {len(invalid)} error(s) occurred."
    )
    print(render_preview(config, content, valid, invalid, verbose=args.verbose or args.dry_run))

    if args.dry_run:
        logger.info("Dry run, no mail sent")
        return EXIT_OK

    if not valid:
        logger.warning("No valid recipients, nothing to send")
        return EXIT_PARTIAL_FAILURE if invalid else EXIT_OK

    if not args.yes and not confirm():
        print("Sending cancelled.")
        return EXIT_OK

    report = send_with_progress(sender, valid, content)
    report.failed[:0] = invalid
    print(render_report(report))
    return EXIT_OK if report.ok else EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run(args)
    except MailsendError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.error("Interrupted, some mails may have been sent and others not")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
