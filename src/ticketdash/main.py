"""Application entry point wiring loader, aggregation, chat projection and reports."""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, Sequence

from .analysis import aggregate
from .chat import to_chat_view
from .cli import parse_args
from .config import load_config
from .errors import ConfigurationError, LoaderError, TicketNotFoundError
from .loader import TicketLoader
from .models import EvaluatedTicket
from .report import (
    generate_chat_report,
    generate_macro_report,
    generate_ticket_list_report,
    ticket_list_to_json,
    to_json,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_TICKET_NOT_FOUND = 3
EXIT_LOADER_ERROR = 4
EXIT_NO_TICKETS = 5


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def find_ticket(tickets: List[EvaluatedTicket], ticket_id: str) -> EvaluatedTicket:
    """Return the loaded ticket with ``ticket_id``.

    Raises:
        TicketNotFoundError: If no loaded ticket has that id.
    """
    for ticket in tickets:
        if ticket.id == ticket_id:
            return ticket
    raise TicketNotFoundError(f"Ticket '{ticket_id}' is not part of the loaded tickets.")


def orchestrate_dashboard(argv: Optional[Sequence[str]] = None) -> int:
    """Run the dashboard and map failures to process exit codes."""
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)

        config = load_config(
            source=args.source,
            ticket_ids=args.ticket_ids,
            agent_keywords=args.agent_keywords,
            timeout_seconds=args.timeout,
        )

        print(f"Loading tickets from '{config.source}'...", file=sys.stderr)
        loader = TicketLoader(config=config)
        tickets = loader.load_tickets()
        if not tickets:
            print("ERROR: No tickets could be loaded.", file=sys.stderr)
            return EXIT_NO_TICKETS

        if args.view == "micro" and not args.ticket_id:
            chats = [to_chat_view(ticket, agent_keywords=config.agent_keywords) for ticket in tickets]
            output = (
                ticket_list_to_json(chats)
                if args.output_format == "json"
                else generate_ticket_list_report(chats)
            )
        elif args.view == "micro":
            chat = to_chat_view(
                find_ticket(tickets, args.ticket_id),
                agent_keywords=config.agent_keywords,
            )
            output = (
                to_json(chat)
                if args.output_format == "json"
                else generate_chat_report(chat, show_evaluations=args.show_evaluations)
            )
        else:
            analysis = aggregate(tickets)
            output = (
                to_json(analysis)
                if args.output_format == "json"
                else generate_macro_report(analysis)
            )

        print(output)
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except TicketNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_TICKET_NOT_FOUND
    except LoaderError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_LOADER_ERROR
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error while rendering the dashboard")
        return EXIT_UNEXPECTED_ERROR


def main() -> None:
    sys.exit(orchestrate_dashboard())


if __name__ == "__main__":
    main()
