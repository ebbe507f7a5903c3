import asyncio
import json

import httpx
import pytest

from app.schemas.recommendation import (
    AttendeeAnswer,
    AttendeePayload,
    QuestionType,
    RecommendationRequest,
)
from app.services.ai_client import AIServiceClient, build_payload, normalize_base_url
from app.services.errors import (
    ContractViolationError,
    RecommendationValidationError,
    UpstreamServiceError,
)


def _request(attendee_id="A1", nickname="Ana", event_id="E1") -> RecommendationRequest:
    return RecommendationRequest(
        event_id=event_id,
        attendee=AttendeePayload(
            attendee_id=attendee_id,
            nickname=nickname,
            answers=[
                AttendeeAnswer(question="About you", question_type=QuestionType.FREE_TEXT, text_value="Builder"),
                AttendeeAnswer(question="Interests", question_type=QuestionType.MULTI_SELECT,
                               answer_label="AI", rank=1),
            ],
        ),
    )


def _client(handler) -> AIServiceClient:
    return AIServiceClient("http://ai.test", "secret-token", transport=httpx.MockTransport(handler))


def _recommendations_body(event_id="E1"):
    return {
        "eventId": event_id,
        "recommendations": [
            {"sourceAttendeeId": "A1", "targetAttendeeId": "A2", "score": 0.87, "reasoning": "Both build AI tools"},
        ],
    }


def test_normalize_base_url_appends_api_once():
    assert normalize_base_url("http://ai.test") == "http://ai.test/api"
    assert normalize_base_url("http://ai.test/") == "http://ai.test/api"
    assert normalize_base_url("http://ai.test/api") == "http://ai.test/api"
    assert normalize_base_url("http://ai.test/api/") == "http://ai.test/api"


def test_submit_profile_sends_bearer_token_and_stripped_body():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, json={"message": "queued", "status": "success"})

    async def run():
        client = _client(handler)
        try:
            return await client.submit_profile(_request())
        finally:
            await client.close()

    response = asyncio.run(run())

    assert response.status == "success"
    assert len(seen) == 1
    sent = seen[0]
    assert sent.method == "POST"
    assert str(sent.url) == "http://ai.test/api/v1/ai/attendees/process"
    assert sent.headers["authorization"] == "Bearer secret-token"
    assert json.loads(sent.content) == {
        "eventId": "E1",
        "attendee": {
            "attendeeId": "A1",
            "nickname": "Ana",
            "answers": [
                {"question": "About you", "questionType": "FREE_TEXT", "textValue": "Builder"},
                {"question": "Interests", "questionType": "MULTI_SELECT", "answerLabel": "AI", "rank": 1},
            ],
        },
    }


def test_fetch_recommendations_parses_camel_case_response():
    def handler(request: httpx.Request):
        assert request.url.path == "/api/v1/ai/attendees/recommendations"
        return httpx.Response(200, json=_recommendations_body())

    async def run():
        client = _client(handler)
        try:
            return await client.fetch_recommendations(_request())
        finally:
            await client.close()

    result = asyncio.run(run())

    assert result.event_id == "E1"
    assert len(result.recommendations) == 1
    item = result.recommendations[0]
    assert item.source_attendee_id == "A1"
    assert item.target_attendee_id == "A2"
    assert item.score == pytest.approx(0.87)
    assert item.reasoning == "Both build AI tools"


def test_non_success_status_raises_upstream_error():
    def handler(request: httpx.Request):
        return httpx.Response(500, text="model overloaded")

    async def run():
        client = _client(handler)
        try:
            await client.fetch_recommendations(_request())
        finally:
            await client.close()

    with pytest.raises(UpstreamServiceError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "model overloaded"


def test_connection_failure_raises_upstream_error_without_status():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        client = _client(handler)
        try:
            await client.submit_profile(_request())
        finally:
            await client.close()

    with pytest.raises(UpstreamServiceError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code is None


def test_non_json_success_raises_contract_violation():
    def handler(request: httpx.Request):
        return httpx.Response(200, text="<html>ok</html>")

    async def run():
        client = _client(handler)
        try:
            await client.fetch_recommendations(_request())
        finally:
            await client.close()

    with pytest.raises(ContractViolationError):
        asyncio.run(run())


def test_unexpected_shape_raises_contract_violation():
    def handler(request: httpx.Request):
        return httpx.Response(200, json={"eventId": "E1", "recommendations": [{"score": "high"}]})

    async def run():
        client = _client(handler)
        try:
            await client.fetch_recommendations(_request())
        finally:
            await client.close()

    with pytest.raises(ContractViolationError):
        asyncio.run(run())


def test_missing_identifiers_fail_before_any_network_call():
    calls = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json={})

    async def run(request):
        client = _client(handler)
        try:
            await client.submit_profile(request)
        finally:
            await client.close()

    for bad in (_request(attendee_id="  "), _request(event_id=""), _request(nickname=" ")):
        with pytest.raises(RecommendationValidationError):
            asyncio.run(run(bad))
    assert calls == []


def test_build_payload_omits_absent_optional_sections():
    body = build_payload(RecommendationRequest(
        event_id="E1",
        attendee=AttendeePayload(attendee_id="A1"),
    ))
    assert body == {"eventId": "E1", "attendee": {"attendeeId": "A1", "nickname": "Guest", "answers": []}}
