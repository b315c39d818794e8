"""Custom exception types for PR event insights."""


class InsightsError(Exception):
    """Base exception for all recoverable insights errors."""


class ConfigurationError(InsightsError):
    """Raised when runtime configuration values are missing or invalid."""


class ValidationError(InsightsError):
    """Raised when query criteria or window parameters are not acceptable."""


class NotFoundError(InsightsError):
    """Raised when a single-entity lookup matches no records after filtering."""


class ApiError(InsightsError):
    """Raised when a collaborator API request fails or returns an unexpected response."""


class DataValidationError(InsightsError):
    """Raised when an event payload does not meet expected constraints."""
