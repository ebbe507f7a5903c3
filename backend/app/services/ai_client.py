"""AI matching service client — profile submission and recommendation fetch."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from app.schemas.recommendation import (
    ProcessAttendeeResponse,
    RecommendationRequest,
    RecommendationsResponse,
)
from app.services.errors import (
    ContractViolationError,
    RecommendationValidationError,
    UpstreamServiceError,
)
from app.services.payload import prune_nulls

logger = logging.getLogger(__name__)

# Longest upstream body kept in logs
_LOG_BODY_LIMIT = 500


def normalize_base_url(raw_base: str) -> str:
    """The AI endpoints live under /api; append it unless already present."""
    base = raw_base.rstrip("/")
    if base.endswith("/api"):
        return base
    return f"{base}/api"


def validate_request(request: RecommendationRequest):
    """Reject a request with a blank identifier or nickname."""
    if not request.event_id or not request.event_id.strip():
        raise RecommendationValidationError("eventId is required")
    if not request.attendee.attendee_id or not request.attendee.attendee_id.strip():
        raise RecommendationValidationError("attendee.attendeeId is required")
    if not request.attendee.nickname or not request.attendee.nickname.strip():
        raise RecommendationValidationError("attendee.nickname is required")


def build_payload(request: RecommendationRequest) -> dict:
    """Validate identifiers and return the camelCase body with nulls stripped."""
    validate_request(request)
    return prune_nulls(request.model_dump(by_alias=True, mode="json"))


class AIServiceClient:
    """Adapter for the AI matching service (static bearer token)."""

    PROCESS_PATH = "/v1/ai/attendees/process"
    RECOMMENDATIONS_PATH = "/v1/ai/attendees/recommendations"

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = normalize_base_url(base_url)
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def submit_profile(self, request: RecommendationRequest) -> ProcessAttendeeResponse:
        """Submit attendee data for processing. POST /api/v1/ai/attendees/process"""
        data = await self._post_json(self.PROCESS_PATH, request)
        return self._parse(ProcessAttendeeResponse, data, self.PROCESS_PATH)

    async def fetch_recommendations(self, request: RecommendationRequest) -> RecommendationsResponse:
        """Get recommendations for an attendee. POST /api/v1/ai/attendees/recommendations"""
        data = await self._post_json(self.RECOMMENDATIONS_PATH, request)
        return self._parse(RecommendationsResponse, data, self.RECOMMENDATIONS_PATH)

    async def _post_json(self, path: str, request: RecommendationRequest) -> Any:
        body = build_payload(request)
        client = await self._get_client()
        try:
            resp = await client.post(
                path,
                json=body,
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"AI service request error for {path}: {e}")
            raise UpstreamServiceError(None, str(e)) from e

        if not resp.is_success:
            logger.error(
                f"AI service error: {resp.status_code} for {path}: {resp.text[:_LOG_BODY_LIMIT]}"
            )
            raise UpstreamServiceError(resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"AI service returned non-JSON for {path}: {resp.text[:_LOG_BODY_LIMIT]}")
            raise ContractViolationError("AI service returned non-JSON response") from e

    def _parse(self, model: type[BaseModel], data: Any, path: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"AI service response for {path} violates contract: {e}")
            raise ContractViolationError(f"Unexpected response shape from {path}") from e

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
