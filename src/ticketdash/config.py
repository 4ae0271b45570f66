"""Configuration parsing and validation for the ticket evaluation dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .chat import DEFAULT_AGENT_KEYWORDS
from .errors import ConfigurationError

SOURCE_ENV_VAR = "TICKETDASH_SOURCE"
AGENT_KEYWORDS_ENV_VAR = "TICKETDASH_AGENT_KEYWORDS"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the dashboard."""

    source: str
    ticket_ids: Tuple[str, ...]
    agent_keywords: Tuple[str, ...]
    timeout_seconds: int = 30

    @property
    def is_remote(self) -> bool:
        """Whether tickets are fetched over HTTP rather than read from disk."""
        return is_url(self.source)


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _normalize_keywords(keywords: Sequence[str]) -> Tuple[str, ...]:
    normalized = []
    for keyword in keywords:
        cleaned = keyword.strip().lower()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return tuple(normalized)


def load_config(
    source: Optional[str],
    ticket_ids: Optional[Sequence[str]] = None,
    agent_keywords: Optional[Sequence[str]] = None,
    timeout_seconds: int = 30,
) -> Config:
    """Build and validate application configuration.

    Args:
        source: Local directory or HTTP base URL holding ``<ticket_id>.json``
            documents. Falls back to ``TICKETDASH_SOURCE`` when empty.
        ticket_ids: Ticket ids to load. Optional for directory sources.
        agent_keywords: Case-insensitive sender substrings identifying support
            agents. Falls back to ``TICKETDASH_AGENT_KEYWORDS`` (comma
            separated), then to the built-in defaults.
        timeout_seconds: Per-request timeout for HTTP sources.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the source is missing or not a directory, the
            timeout is not positive, or no usable agent keyword remains.
    """
    resolved_source = (source or os.getenv(SOURCE_ENV_VAR, "")).strip()
    if not resolved_source:
        raise ConfigurationError(
            "Missing ticket source. Pass --source or set the "
            f"'{SOURCE_ENV_VAR}' environment variable."
        )

    if not is_url(resolved_source) and not Path(resolved_source).is_dir():
        raise ConfigurationError(
            f"Invalid ticket source '{resolved_source}': expected an existing "
            "directory or an http(s) URL."
        )

    if timeout_seconds <= 0:
        raise ConfigurationError(
            "Invalid value for 'timeout_seconds': expected an integer greater than 0."
        )

    if agent_keywords is None:
        env_keywords = os.getenv(AGENT_KEYWORDS_ENV_VAR, "").strip()
        if env_keywords:
            agent_keywords = env_keywords.split(",")
        else:
            agent_keywords = DEFAULT_AGENT_KEYWORDS

    keywords = _normalize_keywords(agent_keywords)
    if not keywords:
        raise ConfigurationError("At least one non-blank agent keyword is required.")

    ids = tuple(ticket_id.strip() for ticket_id in ticket_ids or () if ticket_id.strip())

    return Config(
        source=resolved_source,
        ticket_ids=ids,
        agent_keywords=keywords,
        timeout_seconds=timeout_seconds,
    )
