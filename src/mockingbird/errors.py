"""
Mockingbird Errors

Error taxonomy shared by the engine, the HTTP surface and the CLI.
"""

from typing import List, Optional


class MockingbirdError(Exception):
    """Base class for all Mockingbird errors."""

    kind = "error"

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {'kind': self.kind, 'error': str(self)}


class NotFoundError(MockingbirdError):
    """No registered endpoint matches the request method and path."""

    kind = "not_found"

    def __init__(self, method: str, path: str, available_endpoints: Optional[List[str]] = None):
        self.method = method
        self.path = path
        self.available_endpoints = list(available_endpoints or [])
        super().__init__(f"Endpoint not found for {method} {path}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['availableEndpoints'] = self.available_endpoints
        return data


class RenderError(MockingbirdError):
    """
    Rendered response template is not valid JSON.

    Carries the status code the selected scenario intended to return, which
    is distinct from whatever status the transport layer reports.
    """

    kind = "render_error"

    def __init__(self, status_code: int, response_text: str, reason: str = ""):
        self.status_code = status_code
        self.response_text = response_text
        self.reason = reason
        message = (
            "Failed to parse dynamic response template. Ensure the result is valid JSON. "
            f"(Scenario Status: {status_code})"
        )
        if reason:
            message += f" Error: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['scenarioStatus'] = self.status_code
        data['responseText'] = self.response_text
        return data


class ConditionEvaluationError(MockingbirdError):
    """Malformed condition or runtime failure while evaluating one."""

    kind = "condition_error"


class EndpointValidationError(MockingbirdError, ValueError):
    """Authoring payload does not describe a valid endpoint definition."""

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data['field'] = self.field
        return data


class ConfigError(MockingbirdError, ValueError):
    """Invalid configuration value."""

    kind = "config_error"
