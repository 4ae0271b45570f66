"""Loading of evaluated ticket documents from a directory or an HTTP source."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ConfigurationError, DataValidationError, LoaderError, TicketDashboardError
from .models import (
    Category,
    Criteria,
    EvaluatedTicket,
    Evaluation,
    Grid,
    Response,
    TicketDetails,
    TicketHeader,
    TicketResponse,
)

logger = logging.getLogger(__name__)

_REQUIRED_TICKET_FIELDS = ("id", "title", "header", "details", "responses")


def _require_mapping(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DataValidationError(f"Expected an object for {context}, got {type(value).__name__}.")
    return value


def _require_list(value: Any, context: str) -> List[Any]:
    if not isinstance(value, list):
        raise DataValidationError(f"Expected a list for {context}, got {type(value).__name__}.")
    return value


def _parse_header(payload: Dict[str, Any]) -> TicketHeader:
    return TicketHeader(
        creation_date=str(payload.get("creation_date", "")),
        source=str(payload.get("source", "")),
        request_by=str(payload.get("request_by", "")),
        status=str(payload.get("status", "")),
        type=payload.get("type"),
        priority=str(payload.get("priority", "")),
        group=str(payload.get("group", "")),
        assigned_to=str(payload.get("assigned_to", "")),
    )


def _parse_details(payload: Dict[str, Any]) -> TicketDetails:
    return TicketDetails(
        total_time_spent=payload.get("total_time_spent") or 0,
        account_type=str(payload.get("account_type", "")),
        topic=str(payload.get("topic", "")),
        language=str(payload.get("language", "")),
    )


def _parse_evaluation(payload: Any) -> Optional[Evaluation]:
    if payload is None:
        return None

    evaluation = _require_mapping(payload, "response evaluation")
    score = evaluation.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise DataValidationError(f"Evaluation score must be a number, got {score!r}.")

    verdicts: List[Response] = []
    for entry in _require_list(evaluation.get("evaluations", []), "evaluation verdicts"):
        verdict = _require_mapping(entry, "evaluation verdict")
        verdicts.append(
            Response(
                answer=str(verdict.get("answer", "")),
                justification=str(verdict.get("justification", "")),
            )
        )
    return Evaluation(score=score, evaluations=verdicts)


def _parse_response(payload: Any) -> TicketResponse:
    response = _require_mapping(payload, "ticket response")
    return TicketResponse(
        sender=str(response.get("sender", "")),
        date=str(response.get("date", "")),
        content=str(response.get("content", "")),
        evaluation=_parse_evaluation(response.get("evaluation")),
    )


def _parse_grid(payload: Any) -> Grid:
    if payload is None:
        return Grid()

    grid = _require_mapping(payload, "ticket grid")
    categories: List[Category] = []
    for item in grid.get("categories") or []:
        category = _require_mapping(item, "grid category")
        criteria: List[Criteria] = []
        for entry in category.get("criteria") or []:
            criterion = _require_mapping(entry, "grid criterion")
            criteria.append(
                Criteria(
                    content=str(criterion.get("content", "")),
                    type=str(criterion.get("type", "")),
                    partial_level=criterion.get("partial_level") or 0,
                )
            )
        categories.append(
            Category(
                name=str(category.get("name", "")),
                full_score=category.get("full_score") or 0,
                partial_scores=list(category.get("partial_scores") or []),
                criteria=criteria,
            )
        )
    return Grid(categories=categories)


def parse_ticket(payload: Any) -> EvaluatedTicket:
    """Convert one decoded ticket document into an ``EvaluatedTicket``.

    Raises:
        DataValidationError: If the payload is not an object, a required
            top-level field is missing, or a nested value has the wrong shape.
    """
    document = _require_mapping(payload, "ticket document")
    missing = [name for name in _REQUIRED_TICKET_FIELDS if name not in document]
    if missing:
        raise DataValidationError(
            f"Ticket document is missing required fields: {', '.join(missing)}"
        )

    return EvaluatedTicket(
        id=str(document["id"]),
        title=str(document["title"]),
        header=_parse_header(_require_mapping(document["header"], "ticket header")),
        details=_parse_details(_require_mapping(document["details"], "ticket details")),
        responses=[
            _parse_response(item)
            for item in _require_list(document["responses"], "ticket responses")
        ],
        grid=_parse_grid(document.get("grid")),
    )


class TicketLoader:
    """Reads ``<ticket_id>.json`` documents from a directory or an HTTP base URL."""

    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config) -> None:
        """Initialize a loader for the configured source.

        Args:
            config: Validated runtime configuration.
        """
        self._config = config
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def _build_url(self, ticket_id: str) -> str:
        return f"{self._config.source.rstrip('/')}/{ticket_id}.json"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, url: str) -> Any:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            LoaderError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return valid JSON.
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, timeout=self._config.timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise LoaderError(f"Ticket request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code >= 400:
                raise LoaderError(f"Ticket request failed: GET {url} returned {status_code}")

            try:
                return response.json()
            except ValueError as exc:
                raise LoaderError(f"Ticket source returned invalid JSON: GET {url}") from exc

        raise LoaderError(f"Ticket request failed after retries: GET {url}") from last_error

    def _read_json(self, ticket_id: str) -> Any:
        path = Path(self._config.source) / f"{ticket_id}.json"
        try:
            with path.open(encoding="utf-8") as handle:
                return json.load(handle)
        except OSError as exc:
            raise LoaderError(f"Could not read ticket file {path}") from exc
        except ValueError as exc:
            raise LoaderError(f"Ticket file {path} is not valid JSON") from exc

    def list_ticket_ids(self) -> List[str]:
        """Return the ticket ids to load.

        Configured ids win. A directory source without configured ids yields the
        stems of its ``*.json`` files in name order.

        Raises:
            ConfigurationError: If the source is remote and no ids are configured.
            LoaderError: If the source directory cannot be listed.
        """
        if self._config.ticket_ids:
            return list(self._config.ticket_ids)

        if self._config.is_remote:
            raise ConfigurationError(
                "Ticket ids are required when loading from an HTTP source."
            )

        directory = Path(self._config.source)
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            raise LoaderError(f"Could not list ticket directory {directory}") from exc

        return sorted(
            entry.stem for entry in entries if entry.suffix == ".json" and entry.is_file()
        )

    def load_ticket(self, ticket_id: str) -> EvaluatedTicket:
        """Load and parse one ticket document.

        Raises:
            LoaderError: If the document cannot be fetched or decoded.
            DataValidationError: If the document does not match the ticket shape.
        """
        if self._config.is_remote:
            payload = self._get_json(self._build_url(ticket_id))
        else:
            payload = self._read_json(ticket_id)
        return parse_ticket(payload)

    def load_tickets(self) -> List[EvaluatedTicket]:
        """Load every ticket, skipping the ones that fail.

        A failing document is logged and left out, so the result may be a
        partial collection.

        Raises:
            LoaderError: If the source cannot be listed, or if tickets were
                requested and every one of them failed.
        """
        tickets: List[EvaluatedTicket] = []
        ticket_ids = self.list_ticket_ids()

        for ticket_id in ticket_ids:
            try:
                tickets.append(self.load_ticket(ticket_id))
            except TicketDashboardError as exc:
                logger.warning(
                    "Failed to load ticket %s: %s",
                    ticket_id,
                    exc,
                    extra={"ticket_id": ticket_id, "source": self._config.source},
                )

        if ticket_ids and not tickets:
            raise LoaderError(
                f"None of the {len(ticket_ids)} requested tickets could be loaded "
                f"from '{self._config.source}'."
            )

        logger.info(
            "Loaded tickets",
            extra={
                "source": self._config.source,
                "tickets_requested": len(ticket_ids),
                "tickets_loaded": len(tickets),
            },
        )
        return tickets
