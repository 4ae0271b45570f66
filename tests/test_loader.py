"""Tests for ticket document parsing and loading with mocked HTTP."""

import json
import logging
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ticketdash.config import Config
from ticketdash.errors import ConfigurationError, DataValidationError, LoaderError
from ticketdash.loader import TicketLoader, parse_ticket


def _payload(ticket_id="36925759") -> dict:
    return {
        "id": ticket_id,
        "title": "Accès au compte",
        "header": {
            "creation_date": "2024-01-01T00:00:00Z",
            "source": "email",
            "request_by": "Jane Doe",
            "status": "solved",
            "type": None,
            "priority": "normal",
            "group": "Support N1",
            "assigned_to": "Thomas",
        },
        "details": {
            "total_time_spent": 18,
            "account_type": "premium",
            "topic": "login",
            "language": "fr",
        },
        "responses": [
            {"sender": "Jane Doe", "date": "2024-01-01T00:00:00Z", "content": "Je ne peux plus me connecter."},
            {
                "sender": "Service Client",
                "date": "2024-01-01T03:00:00Z",
                "content": "Votre mot de passe a été réinitialisé.",
                "evaluation": {
                    "score": 85,
                    "evaluations": [
                        {"answer": "Oui", "justification": "Salutation présente"},
                        {"answer": "N/A", "justification": "Pas de remboursement"},
                    ],
                },
            },
        ],
        "grid": {
            "categories": [
                {
                    "name": "Politesse",
                    "full_score": 20,
                    "partial_scores": [10],
                    "criteria": [{"content": "Saluer le client", "type": "full", "partial_level": 0}],
                }
            ]
        },
    }


def _directory_config(path: Path, ticket_ids=()) -> Config:
    return Config(source=str(path), ticket_ids=tuple(ticket_ids), agent_keywords=("support",))


def _remote_config(ticket_ids=("1",)) -> Config:
    return Config(
        source="https://example.org/outputs/",
        ticket_ids=tuple(ticket_ids),
        agent_keywords=("support",),
    )


def _response(status_code: int, payload=None, headers: dict | None = None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload if payload is not None else {}
    return response


def test_parse_ticket_builds_models():
    """Verify a complete document converts into nested ticket models."""
    ticket = parse_ticket(_payload())

    assert ticket.id == "36925759"
    assert ticket.header.type is None
    assert ticket.details.total_time_spent == 18
    assert len(ticket.responses) == 2
    assert ticket.responses[0].evaluation is None
    assert ticket.responses[1].evaluation.score == 85
    assert ticket.responses[1].evaluation.evaluations[1].answer == "N/A"
    assert ticket.grid.categories[0].name == "Politesse"
    assert ticket.grid.categories[0].criteria[0].type == "full"


def test_parse_ticket_numeric_id_and_missing_grid():
    """Verify numeric ids are stringified and a missing grid yields no categories."""
    payload = _payload()
    payload["id"] = 42
    del payload["grid"]

    ticket = parse_ticket(payload)

    assert ticket.id == "42"
    assert ticket.grid.categories == []


def test_parse_ticket_missing_required_field_raises_data_validation_error():
    """Verify documents without required fields are rejected."""
    payload = _payload()
    del payload["responses"]

    with pytest.raises(DataValidationError):
        parse_ticket(payload)


def test_parse_ticket_non_numeric_score_raises_data_validation_error():
    """Verify evaluation scores must be numbers."""
    payload = _payload()
    payload["responses"][1]["evaluation"]["score"] = "high"

    with pytest.raises(DataValidationError):
        parse_ticket(payload)


def test_parse_ticket_non_object_payload_raises_data_validation_error():
    """Verify a JSON array is not accepted as a ticket document."""
    with pytest.raises(DataValidationError):
        parse_ticket([_payload()])


def test_list_ticket_ids_discovers_directory_files(tmp_path):
    """Verify directory sources without configured ids use sorted JSON file stems."""
    (tmp_path / "37238273.json").write_text("{}", encoding="utf-8")
    (tmp_path / "36824999.json").write_text("{}", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    loader = TicketLoader(config=_directory_config(tmp_path))

    assert loader.list_ticket_ids() == ["36824999", "37238273"]


def test_list_ticket_ids_remote_without_ids_raises_configuration_error():
    """Verify HTTP sources require explicit ticket ids."""
    loader = TicketLoader(config=_remote_config(ticket_ids=()))

    with pytest.raises(ConfigurationError):
        loader.list_ticket_ids()


def test_load_tickets_skips_broken_files(tmp_path, caplog):
    """Verify one unreadable or invalid document does not abort the batch."""
    (tmp_path / "1.json").write_text(json.dumps(_payload("1")), encoding="utf-8")
    (tmp_path / "2.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "3.json").write_text(json.dumps({"id": "3"}), encoding="utf-8")
    (tmp_path / "4.json").write_text(json.dumps(_payload("4")), encoding="utf-8")

    loader = TicketLoader(config=_directory_config(tmp_path, ticket_ids=["1", "2", "3", "4", "5"]))

    with caplog.at_level(logging.WARNING, logger="ticketdash.loader"):
        tickets = loader.load_tickets()

    assert [ticket.id for ticket in tickets] == ["1", "4"]
    assert len([record for record in caplog.records if record.levelno == logging.WARNING]) == 3


def test_load_ticket_missing_file_raises_loader_error(tmp_path):
    """Verify a missing ticket file is reported as a loader error."""
    loader = TicketLoader(config=_directory_config(tmp_path))

    with pytest.raises(LoaderError):
        loader.load_ticket("absent")


def test_load_ticket_remote_builds_url_and_parses_payload():
    """Verify remote tickets are fetched from <base>/<id>.json."""
    loader = TicketLoader(config=_remote_config())
    loader._session.get = Mock(return_value=_response(200, payload=_payload("1")))

    ticket = loader.load_ticket("1")

    assert ticket.id == "1"
    loader._session.get.assert_called_once_with("https://example.org/outputs/1.json", timeout=30)


def test_get_json_retries_on_429_and_succeeds():
    """Verify the loader retries after HTTP 429 and honors Retry-After."""
    loader = TicketLoader(config=_remote_config())
    first = _response(429, headers={"Retry-After": "2"})
    second = _response(200, payload=_payload("1"))
    loader._session.get = Mock(side_effect=[first, second])

    with patch("ticketdash.loader.time.sleep") as sleep_mock:
        ticket = loader.load_ticket("1")

    assert ticket.id == "1"
    assert loader._session.get.call_count == 2
    sleep_mock.assert_called_once_with(2)


def test_get_json_retries_on_5xx_and_raises_after_max_retries():
    """Verify persistent server errors raise LoaderError after the retry limit."""
    loader = TicketLoader(config=_remote_config())
    loader._session.get = Mock(side_effect=[_response(503)] * loader._MAX_RETRIES)

    with patch("ticketdash.loader.time.sleep") as sleep_mock:
        with pytest.raises(LoaderError):
            loader.load_ticket("1")

    assert loader._session.get.call_count == loader._MAX_RETRIES
    assert sleep_mock.call_count == loader._MAX_RETRIES - 1


def test_get_json_transport_errors_raise_loader_error():
    """Verify repeated connection failures surface as LoaderError."""
    loader = TicketLoader(config=_remote_config())
    loader._session.get = Mock(side_effect=requests.ConnectionError("refused"))

    with patch("ticketdash.loader.time.sleep"):
        with pytest.raises(LoaderError):
            loader.load_ticket("1")

    assert loader._session.get.call_count == loader._MAX_RETRIES


def test_get_json_not_found_raises_without_retry():
    """Verify client errors are not retried."""
    loader = TicketLoader(config=_remote_config())
    loader._session.get = Mock(return_value=_response(404))

    with patch("ticketdash.loader.time.sleep") as sleep_mock:
        with pytest.raises(LoaderError):
            loader.load_ticket("1")

    sleep_mock.assert_not_called()


def test_load_tickets_remote_partial_failure_returns_remaining():
    """Verify a failing remote ticket is skipped while others load."""
    loader = TicketLoader(config=_remote_config(ticket_ids=("1", "2")))
    loader._session.get = Mock(side_effect=[_response(404), _response(200, payload=_payload("2"))])

    tickets = loader.load_tickets()

    assert [ticket.id for ticket in tickets] == ["2"]


def test_parse_ticket_non_object_verdict_raises_data_validation_error():
    """Verify verdict entries that are not objects are rejected like malformed responses."""
    payload = _payload()
    payload["responses"][1]["evaluation"]["evaluations"].append("Oui")

    with pytest.raises(DataValidationError):
        parse_ticket(payload)


def test_parse_ticket_non_object_criterion_raises_data_validation_error():
    """Verify grid criteria that are not objects are rejected."""
    payload = _payload()
    payload["grid"]["categories"][0]["criteria"].append(["Saluer le client"])

    with pytest.raises(DataValidationError):
        parse_ticket(payload)


def test_list_ticket_ids_missing_directory_raises_loader_error(tmp_path):
    """Verify a directory source that cannot be listed is a loader failure."""
    loader = TicketLoader(config=_directory_config(tmp_path / "removed"))

    with pytest.raises(LoaderError):
        loader.list_ticket_ids()


def test_load_tickets_all_failures_raise_loader_error(tmp_path):
    """Verify a batch where every requested ticket fails is reported as a source failure."""
    (tmp_path / "1.json").write_text("{broken", encoding="utf-8")
    (tmp_path / "2.json").write_text(json.dumps({"id": "2"}), encoding="utf-8")

    loader = TicketLoader(config=_directory_config(tmp_path))

    with pytest.raises(LoaderError):
        loader.load_tickets()


def test_load_tickets_empty_directory_returns_empty_list(tmp_path):
    """Verify a directory without ticket files yields an empty collection."""
    loader = TicketLoader(config=_directory_config(tmp_path))

    assert loader.load_tickets() == []
