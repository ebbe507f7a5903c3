"""Failures raised while obtaining AI recommendations."""


class RecommendationError(Exception):
    """Base class for every recommendation failure."""


class RecommendationValidationError(RecommendationError):
    """Request is missing an identifier; raised before any network call."""


class UpstreamServiceError(RecommendationError):
    """AI service answered with a non-2xx status or could not be reached."""

    def __init__(self, status_code: int | None, body: str = ""):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"AI service unreachable: {body}")
        else:
            super().__init__(f"AI service request failed: {status_code}")


class ContractViolationError(RecommendationError):
    """AI service answered 2xx with a body that does not match the contract."""


class RecommendationTimeoutError(RecommendationError):
    """A queued caller waited longer than the pending timeout."""
