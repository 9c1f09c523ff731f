"""Command-line entry point for the Slack task plugin."""

import argparse
import logging
import sys

from slacktask import setup_logging
from slacktask.config import load_settings
from slacktask.plugin import RequestName, TaskPlugin

logger = logging.getLogger("slacktask.main")


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Reads the request body from a file or stdin, prints the response body to
    stdout and returns 0 when the host would see a success response code.
    """
    parser = argparse.ArgumentParser(
        description="Slack task - post pipeline notifications to a Slack webhook"
    )
    parser.add_argument(
        "request",
        choices=[name.value for name in RequestName],
        help="Request to handle",
    )
    parser.add_argument(
        "--body",
        type=argparse.FileType("r", encoding="utf-8"),
        default=None,
        help="File with the JSON request body ('-' for stdin)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    settings = load_settings()
    log_level = "DEBUG" if args.debug else settings.log_level
    setup_logging(log_level, log_format=settings.log_format)
    logger.debug(f"Slack task handling {args.request} request")

    body = None
    if args.body is not None:
        with args.body:
            body = args.body.read()

    response = TaskPlugin(settings).handle(args.request, body)
    print(response.to_json())

    if not response.ok:
        return 1
    if args.request == RequestName.EXECUTE.value and not response.body.get("success"):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
