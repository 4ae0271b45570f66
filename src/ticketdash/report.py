"""Formatting helpers and text reports for the dashboard views.

This module provides utilities for:
- Formatting ticket timestamps as short French dates (``1 janv. 2024, 03:00``).
- Rendering the macro view of a ``TicketAnalysis`` as a text report.
- Rendering the micro view of a ``TicketChat`` as a chat transcript.
- Listing the tickets available for the micro view.
- Exporting either view as JSON using the dashboard's camelCase keys.
"""

from __future__ import annotations

import json
import math
from datetime import timezone
from typing import List, Optional, Sequence, Union

from .analysis import SCORE_RANGES, parse_timestamp
from .models import ChatMessage, TicketAnalysis, TicketChat

_FRENCH_MONTHS = (
    "janv.",
    "févr.",
    "mars",
    "avr.",
    "mai",
    "juin",
    "juil.",
    "août",
    "sept.",
    "oct.",
    "nov.",
    "déc.",
)

_AGENT_NAME_WIDTH = 20


def format_date(value: str) -> str:
    """Format an ISO timestamp as a short French date in UTC.

    Returns the input unchanged when it cannot be parsed.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return value

    utc_value = parsed.astimezone(timezone.utc)
    month = _FRENCH_MONTHS[utc_value.month - 1]
    return f"{utc_value.day} {month} {utc_value.year}, {utc_value:%H:%M}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded towards positive infinity."""
    return math.floor(value + 0.5)


def format_score(score: Optional[float]) -> str:
    """Format a score as ``NN/100``, rounded half up to an integer."""
    if score is None:
        return "n/a"
    return f"{round_half_up(score)}/100"


def _truncate(name: str, width: int = _AGENT_NAME_WIDTH) -> str:
    return name if len(name) <= width else name[:width] + "..."


def generate_macro_report(analysis: TicketAnalysis) -> str:
    """Generate the aggregate view of a ticket collection.

    The report includes the headline statistics, the score distribution in
    ascending bucket order (buckets without responses are omitted) and one row
    per sender with response count and average score.
    """
    average_hours = round_half_up(analysis.response_time_analysis.average_response_time)

    lines = [
        "Ticket Analysis Dashboard",
        "Macro Overview",
        "",
        f"Average Score: {format_score(analysis.average_score)}",
        f"Total Tickets: {analysis.total_tickets}",
        f"Avg Response Time: {average_hours}h",
        f"Evaluated Responses: {analysis.evaluated_responses}",
        "",
        "Score Distribution",
    ]

    present_ranges = [label for label in SCORE_RANGES if label in analysis.score_distribution]
    if present_ranges:
        for label in present_ranges:
            lines.append(f"   {label:>6}: {analysis.score_distribution[label]}")
    else:
        lines.append("   (no evaluated responses)")

    lines.extend(["", "Agent Performance"])
    if analysis.agent_performance:
        lines.append(f"   {'Agent':<23} {'Responses':>9}  Average Score")
        for agent, perf in analysis.agent_performance.items():
            lines.append(
                f"   {_truncate(agent):<23} {perf.count:>9}  {format_score(perf.average_score)}"
            )
    else:
        lines.append("   (no evaluated responses)")

    return "\n".join(lines)


def _format_message(message: ChatMessage, show_evaluations: bool) -> List[str]:
    role = "AGENT" if message.is_agent else "CLIENT"
    heading = f"[{role}] {message.sender} - {format_date(message.date)}"
    if message.evaluation is not None:
        heading += f" ({format_score(message.evaluation.score)})"

    lines = [heading]
    lines.extend(f"   {line}" for line in message.content.splitlines() or [""])

    if show_evaluations and message.evaluation is not None:
        for verdict in message.evaluation.evaluations:
            lines.append(f"   - {verdict.answer}: {verdict.justification}")

    return lines


def generate_chat_report(chat: TicketChat, show_evaluations: bool = False) -> str:
    """Generate the chat transcript of one ticket.

    Args:
        chat: Projected ticket conversation.
        show_evaluations: Include each criterion verdict under scored messages.

    Returns:
        Formatted multi-line text report.
    """
    lines = [
        f"Ticket: {chat.id}",
        chat.title,
        f"Created: {format_date(chat.header.creation_date)}",
        "",
        f"Status: {chat.header.status}",
        f"Priority: {chat.header.priority}",
        f"Assigned to: {chat.header.assigned_to}",
        f"Topic: {chat.details.topic}",
        f"Language: {chat.details.language}",
        f"Time spent: {chat.details.total_time_spent} min",
        "",
        f"Messages: {len(chat.messages)}",
    ]

    for message in chat.messages:
        lines.append("")
        lines.extend(_format_message(message, show_evaluations))

    return "\n".join(lines)


def _ticket_summary(chat: TicketChat) -> dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "messageCount": len(chat.messages),
        "creationDate": chat.header.creation_date,
    }


def generate_ticket_list_report(chats: Sequence[TicketChat]) -> str:
    """Generate the ticket selection list shown before replaying a conversation.

    Each entry shows the title, id, message count and creation date.
    """
    lines = ["Select Ticket for Analysis", f"Tickets: {len(chats)}"]
    for chat in chats:
        lines.extend(
            [
                "",
                chat.title,
                f"   ID: {chat.id}",
                f"   {len(chat.messages)} messages",
                f"   {format_date(chat.header.creation_date)}",
            ]
        )
    return "\n".join(lines)


def ticket_list_to_json(chats: Sequence[TicketChat]) -> str:
    """Serialize the ticket selection list to indented JSON."""
    return json.dumps([_ticket_summary(chat) for chat in chats], ensure_ascii=False, indent=2)


def to_json(view: Union[TicketAnalysis, TicketChat]) -> str:
    """Serialize an analysis or chat view to indented JSON."""
    return json.dumps(view.to_dict(), ensure_ascii=False, indent=2)
