"""
Error taxonomy for the Mentor provider adapter.

Every error below is caught at the adapter boundary: `Mentor.send` turns them
into a fallback string and `Mentor.analyze` turns them into None.
"""

from typing import Optional


class MentorProviderError(Exception):
    """Base class for provider adapter failures."""


class ConcurrentRequestError(MentorProviderError):
    """Another request is already in flight on this adapter."""


class ConfigurationError(MentorProviderError):
    """Provider credentials or settings are missing."""


class TransportError(MentorProviderError):
    """Network failure, non-2xx status, or an undecodable response body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SafetyBlockedError(MentorProviderError):
    """The candidate was withheld by the provider's safety filters."""


class EmptyResponseError(MentorProviderError):
    """The provider returned no candidates or no content parts."""


class AnalysisParseError(MentorProviderError):
    """An analysis reply could not be parsed as a JSON object."""
