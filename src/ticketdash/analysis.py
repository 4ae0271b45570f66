"""Aggregation of evaluated tickets into dashboard statistics.

This module provides:
- Decile bucketing of 0-100 evaluation scores.
- Tolerant ISO-8601 timestamp parsing for response-time samples.
- ``aggregate``, which folds a ticket collection into a ``TicketAnalysis``.

``category_scores`` is only seeded with zeros from the first ticket's grid and
``response_time_distribution`` is always empty; both are kept as placeholders
for dashboard consumers that expect the keys.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .models import (
    AgentPerformance,
    EvaluatedTicket,
    ResponseTimeAnalysis,
    TicketAnalysis,
    TicketResponse,
)

logger = logging.getLogger(__name__)

SCORE_RANGES: Tuple[str, ...] = (
    "0-9",
    "10-19",
    "20-29",
    "30-39",
    "40-49",
    "50-59",
    "60-69",
    "70-79",
    "80-89",
    "90-100",
)

_SECONDS_PER_HOUR = 3600.0


def score_range(score: float) -> str:
    """Return the decile label for a score.

    Lower bounds are inclusive, so ``90`` lands in ``"90-100"`` and ``89.9`` in
    ``"80-89"``. Scores above 100 fall in the top bucket and negative scores in
    the bottom one.
    """
    if score >= 90:
        return "90-100"
    for lower in range(80, 0, -10):
        if score >= lower:
            return f"{lower}-{lower + 9}"
    return "0-9"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a timezone-aware datetime.

    A trailing ``Z`` is treated as UTC and naive values are assumed to be UTC.
    Returns ``None`` for empty or unparseable input.
    """
    if not value:
        return None

    text = value.strip()
    normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def hours_between(earlier: str, later: str) -> Optional[float]:
    """Return elapsed hours from ``earlier`` to ``later``, or ``None`` if either is invalid.

    Negative values are returned as-is for out-of-order timestamps.
    """
    start = parse_timestamp(earlier)
    end = parse_timestamp(later)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / _SECONDS_PER_HOUR


@dataclass
class _Accumulator:
    """Running totals for a single ``aggregate`` call."""

    total_score: float = 0.0
    evaluated_count: int = 0
    sender_totals: Dict[str, Tuple[float, int]] = field(default_factory=dict)
    score_distribution: Dict[str, int] = field(default_factory=dict)
    response_times: List[float] = field(default_factory=list)
    skipped_samples: int = 0

    def add(self, ticket: EvaluatedTicket, index: int, response: TicketResponse) -> None:
        evaluation = response.evaluation
        if evaluation is None:
            return

        score = evaluation.score
        self.total_score += score
        self.evaluated_count += 1

        sender_sum, sender_count = self.sender_totals.get(response.sender, (0.0, 0))
        self.sender_totals[response.sender] = (sender_sum + score, sender_count + 1)

        bucket = score_range(score)
        self.score_distribution[bucket] = self.score_distribution.get(bucket, 0) + 1

        if index == 0:
            return

        previous = ticket.responses[index - 1]
        elapsed = hours_between(previous.date, response.date)
        if elapsed is None:
            self.skipped_samples += 1
            logger.debug(
                "Skipping response time sample due to unparseable timestamp",
                extra={
                    "ticket_id": ticket.id,
                    "response_index": index,
                    "previous_date": previous.date,
                    "date": response.date,
                },
            )
            return
        self.response_times.append(elapsed)


def _seed_category_scores(tickets: Sequence[EvaluatedTicket]) -> Dict[str, float]:
    if not tickets or not tickets[0].grid.categories:
        return {}
    return {category.name: 0 for category in tickets[0].grid.categories}


def aggregate(tickets: Sequence[EvaluatedTicket]) -> TicketAnalysis:
    """Compute dashboard statistics over a collection of evaluated tickets.

    Business logic:
    - Every response carrying an evaluation counts towards the overall average,
      the decile distribution and its sender's performance.
    - Evaluated responses after the first of a ticket contribute one
      response-time sample: hours since the immediately preceding response,
      whether or not that one was evaluated.
    - Samples with an unparseable timestamp on either side are skipped.
    - Per-sender averages are divided once, after all tickets are folded.

    Empty input, tickets without responses and responses without evaluation are
    all valid and produce zero-valued statistics.
    """
    acc = _Accumulator()
    for ticket in tickets:
        for index, response in enumerate(ticket.responses):
            acc.add(ticket, index, response)

    average_score = acc.total_score / acc.evaluated_count if acc.evaluated_count else 0
    average_response_time = (
        sum(acc.response_times) / len(acc.response_times) if acc.response_times else 0
    )
    agent_performance = {
        sender: AgentPerformance(count=count, average_score=total / count)
        for sender, (total, count) in acc.sender_totals.items()
    }

    logger.info(
        "Aggregated ticket statistics",
        extra={
            "tickets_total": len(tickets),
            "evaluated_responses": acc.evaluated_count,
            "response_time_samples": len(acc.response_times),
            "skipped_response_time_samples": acc.skipped_samples,
        },
    )

    return TicketAnalysis(
        tickets=list(tickets),
        total_tickets=len(tickets),
        average_score=average_score,
        category_scores=_seed_category_scores(tickets),
        score_distribution=dict(acc.score_distribution),
        agent_performance=agent_performance,
        response_time_analysis=ResponseTimeAnalysis(
            average_response_time=average_response_time,
            response_time_distribution={},
        ),
    )
