"""Domain models for evaluated support tickets and their derived views.

Input models mirror the JSON ticket documents field for field. Output models
(``TicketAnalysis``, ``TicketChat`` and their parts) are frozen and rebuilt on
every aggregation or projection call.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class TicketHeader:
    """Fixed-shape ticket metadata shown above a conversation."""

    creation_date: str
    source: str
    request_by: str
    status: str
    type: Optional[str]
    priority: str
    group: str
    assigned_to: str


@dataclass(slots=True)
class TicketDetails:
    """Ticket classification details; ``total_time_spent`` is in minutes."""

    total_time_spent: float
    account_type: str
    topic: str
    language: str


@dataclass(slots=True)
class Response:
    """A criterion-level verdict: ``answer`` is one of "Oui", "Non" or "N/A"."""

    answer: str
    justification: str


@dataclass(slots=True)
class Evaluation:
    """Scoring outcome for one response, ``score`` nominally in 0-100."""

    score: float
    evaluations: List[Response] = field(default_factory=list)


@dataclass(slots=True)
class TicketResponse:
    """One message of a ticket conversation."""

    sender: str
    date: str
    content: str
    evaluation: Optional[Evaluation] = None


@dataclass(slots=True)
class Criteria:
    content: str
    type: str
    partial_level: float


@dataclass(slots=True)
class Category:
    name: str
    full_score: float
    partial_scores: List[float] = field(default_factory=list)
    criteria: List[Criteria] = field(default_factory=list)


@dataclass(slots=True)
class Grid:
    """Scoring rubric the responses were evaluated against."""

    categories: List[Category] = field(default_factory=list)


@dataclass(slots=True)
class EvaluatedTicket:
    """A support ticket with its conversation and per-response scores."""

    id: str
    title: str
    header: TicketHeader
    details: TicketDetails
    responses: List[TicketResponse]
    grid: Grid


@dataclass(frozen=True, slots=True)
class AgentPerformance:
    """Evaluated-response count and mean score for one sender."""

    count: int
    average_score: float


@dataclass(frozen=True, slots=True)
class ResponseTimeAnalysis:
    """Response latency summary in hours.

    ``response_time_distribution`` is reserved and always empty.
    """

    average_response_time: float
    response_time_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TicketAnalysis:
    """Aggregate statistics over a collection of evaluated tickets."""

    tickets: List[EvaluatedTicket]
    total_tickets: int
    average_score: float
    category_scores: Dict[str, float]
    score_distribution: Dict[str, int]
    agent_performance: Dict[str, AgentPerformance]
    response_time_analysis: ResponseTimeAnalysis

    @property
    def evaluated_responses(self) -> int:
        return sum(perf.count for perf in self.agent_performance.values())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the dashboard JSON contract."""
        return {
            "tickets": [asdict(ticket) for ticket in self.tickets],
            "totalTickets": self.total_tickets,
            "averageScore": self.average_score,
            "categoryScores": dict(self.category_scores),
            "scoreDistribution": dict(self.score_distribution),
            "agentPerformance": {
                sender: {"count": perf.count, "averageScore": perf.average_score}
                for sender, perf in self.agent_performance.items()
            },
            "responseTimeAnalysis": {
                "averageResponseTime": self.response_time_analysis.average_response_time,
                "responseTimeDistribution": dict(
                    self.response_time_analysis.response_time_distribution
                ),
            },
        }


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A ticket response tagged for display in a chat transcript."""

    id: str
    sender: str
    date: str
    content: str
    evaluation: Optional[Evaluation]
    is_agent: bool

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "sender": self.sender,
            "date": self.date,
            "content": self.content,
        }
        if self.evaluation is not None:
            payload["evaluation"] = asdict(self.evaluation)
        payload["isAgent"] = self.is_agent
        return payload


@dataclass(frozen=True, slots=True)
class TicketChat:
    """One ticket reshaped into a role-annotated conversation."""

    id: str
    title: str
    header: TicketHeader
    details: TicketDetails
    messages: List[ChatMessage]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "header": asdict(self.header),
            "details": asdict(self.details),
            "messages": [message.to_dict() for message in self.messages],
        }
