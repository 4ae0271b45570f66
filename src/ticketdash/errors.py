"""Custom exception types for the ticket evaluation dashboard."""


class TicketDashboardError(Exception):
    """Base exception for all recoverable dashboard errors."""


class ConfigurationError(TicketDashboardError):
    """Raised when runtime configuration values are missing or invalid."""


class LoaderError(TicketDashboardError):
    """Raised when a ticket document cannot be read from its source."""


class DataValidationError(TicketDashboardError):
    """Raised when a ticket payload does not match the expected record shape."""


class TicketNotFoundError(TicketDashboardError):
    """Raised when a requested ticket id is not part of the loaded collection."""
