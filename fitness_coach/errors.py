"""Error taxonomy shared by the pipeline and the HTTP layer.

Each error carries an HTTP status and a stable ``code`` so that callers can
tell a missing profile apart from an upstream failure or unusable model output.
"""

from typing import Optional


class CoachError(Exception):
    """Base class for all application errors."""

    status_code = 500
    code = "server_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RequestValidationFailed(CoachError):
    status_code = 400
    code = "validation_error"


class AuthenticationFailed(CoachError):
    status_code = 401
    code = "authentication_failed"


class NotFoundError(CoachError):
    status_code = 404
    code = "not_found"


class ConflictError(CoachError):
    status_code = 409
    code = "conflict"


class ProfileMissingError(CoachError):
    """Raised when plan generation is requested before onboarding."""

    status_code = 404
    code = "profile_missing"

    def __init__(self, message: str = "No user profile found. Please complete onboarding first.") -> None:
        super().__init__(message)


class GenerationInProgressError(CoachError):
    """Raised when the same plan is already being generated."""

    status_code = 409
    code = "generation_in_progress"


class GatewayError(CoachError):
    """The generative-text service failed or could not be reached."""

    status_code = 502
    code = "gateway_error"


class MalformedPlanError(CoachError):
    """Model output was not valid JSON after stripping code fences."""

    status_code = 502
    code = "malformed_plan"

    def __init__(self, raw_text: str, message: str = "Invalid response format from AI") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class IncompletePlanError(CoachError):
    """Model output parsed but lacks a field the plan cannot do without."""

    status_code = 502
    code = "incomplete_plan"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
