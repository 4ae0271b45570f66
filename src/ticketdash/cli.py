"""Command-line argument parsing for the ticket evaluation dashboard."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the dashboard.

    Returns:
        Parsed CLI arguments. ``agent_keywords`` is ``None`` when no
        ``--agent-keyword`` was given so configuration defaults apply.
    """
    parser = argparse.ArgumentParser(
        prog="ticket-eval-dashboard",
        description=(
            "Summarize evaluated support tickets (macro view) or replay a single "
            "ticket conversation with its scores (micro view)."
        ),
    )

    parser.add_argument(
        "--source",
        default=None,
        help=(
            "Directory or http(s) base URL containing <ticket_id>.json documents "
            "(default: TICKETDASH_SOURCE environment variable)."
        ),
    )
    parser.add_argument(
        "--ticket",
        dest="ticket_ids",
        action="append",
        default=[],
        help="Ticket id to load (repeatable; required for HTTP sources).",
    )
    parser.add_argument(
        "--view",
        choices=("macro", "micro"),
        default="macro",
        help="Dashboard view to render (default: macro).",
    )
    parser.add_argument(
        "--ticket-id",
        default=None,
        help="Ticket to replay in the micro view (default: list the loaded tickets).",
    )
    parser.add_argument(
        "--agent-keyword",
        dest="agent_keywords",
        action="append",
        default=None,
        help="Case-insensitive sender substring marking support agents (repeatable).",
    )
    parser.add_argument(
        "--show-evaluations",
        action="store_true",
        help="Include criterion verdicts under scored messages in the micro view.",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=30,
        help="HTTP request timeout in seconds (default: 30).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    return parser.parse_args(argv)
