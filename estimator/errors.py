"""Error types raised by the pricing core and mapped to JSON by the app."""

from typing import Any, Dict, Optional


class EstimatorError(Exception):
    """Base error carrying a user facing message and optional details."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {'error': self.message}
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(EstimatorError):
    """Caller supplied input is malformed or out of range."""

    status_code = 400


class PricingResearchError(EstimatorError):
    """AI pricing research failed; nothing was cached."""

    status_code = 502


class ProviderError(PricingResearchError):
    """The text-generation provider call failed."""


class ResponseParseError(PricingResearchError):
    """The provider answered with something that is not a JSON object."""

    def __init__(self, message: str = 'Failed to parse AI response', details: Optional[Any] = None) -> None:
        super().__init__(message, details)
