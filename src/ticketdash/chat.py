"""Projection of an evaluated ticket into a role-annotated chat transcript."""

from __future__ import annotations

from typing import Sequence, Tuple

from .models import ChatMessage, EvaluatedTicket, TicketChat

# Substrings of sender names that identify the support side of a conversation.
DEFAULT_AGENT_KEYWORDS: Tuple[str, ...] = (
    "service",
    "client",
    "support",
    "tomcine",
    "thomas",
)


def is_agent_sender(sender: str, keywords: Sequence[str] = DEFAULT_AGENT_KEYWORDS) -> bool:
    """Return whether a sender name looks like a support agent.

    Matching is a case-insensitive substring test against ``keywords``. This is
    a heuristic on free-text display names, so misclassification is possible.
    """
    name = sender.lower()
    return any(keyword.lower() in name for keyword in keywords if keyword)


def to_chat_view(
    ticket: EvaluatedTicket,
    agent_keywords: Sequence[str] = DEFAULT_AGENT_KEYWORDS,
) -> TicketChat:
    """Build the chat view of a ticket.

    Produces one message per response, in input order, with id
    ``"<ticket id>-<index>"`` and an ``is_agent`` flag from
    :func:`is_agent_sender`. Sender, date, content and evaluation are copied
    unchanged.
    """
    messages = [
        ChatMessage(
            id=f"{ticket.id}-{index}",
            sender=response.sender,
            date=response.date,
            content=response.content,
            evaluation=response.evaluation,
            is_agent=is_agent_sender(response.sender, agent_keywords),
        )
        for index, response in enumerate(ticket.responses)
    ]

    return TicketChat(
        id=ticket.id,
        title=ticket.title,
        header=ticket.header,
        details=ticket.details,
        messages=messages,
    )
