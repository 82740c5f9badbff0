"""
StudyGrove Backend — Health and Middleware Tests
=================================================
"""

import pytest

from studygrove.schemas.common import field_from_loc


@pytest.mark.asyncio
async def test_health_is_public(test_client):
    response = await test_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["grader"] == "available"
    assert body["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_health_degraded_when_grader_down(test_client, grader):
    grader.healthy = False

    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["grader"] == "unavailable"


@pytest.mark.asyncio
async def test_request_id_generated(test_client):
    response = await test_client.get("/health")

    assert len(response.headers["X-Request-ID"]) == 8


@pytest.mark.asyncio
async def test_request_id_echoed(test_client):
    response = await test_client.get("/health", headers={"X-Request-ID": "trace-42"})

    assert response.headers["X-Request-ID"] == "trace-42"


@pytest.mark.asyncio
async def test_unsafe_request_id_replaced(test_client):
    response = await test_client.get("/health", headers={"X-Request-ID": "bad id with spaces!"})

    assert response.headers["X-Request-ID"] != "bad id with spaces!"


@pytest.mark.asyncio
async def test_unknown_route_uses_message_body(test_client, alice_headers):
    response = await test_client.get("/api/nothing-here", headers=alice_headers)

    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}


@pytest.mark.parametrize(
    "loc, field",
    [
        (("body", "duration"), "duration"),
        (("body", "questions", 0, "answer"), "questions.0.answer"),
        (("path", "note_id"), "note_id"),
        (("body",), None),
    ],
)
def test_field_from_loc(loc, field):
    assert field_from_loc(loc) == field


@pytest.mark.asyncio
async def test_malformed_json_is_400_without_field(test_client, alice_headers):
    response = await test_client.post(
        "/api/notes",
        content=b'{"title": "unterminated',
        headers={**alice_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["field"] is None


@pytest.mark.asyncio
async def test_unsupported_method_uses_message_body(test_client, alice_headers):
    response = await test_client.patch("/api/notes", headers=alice_headers)

    assert response.status_code == 405
    assert response.json() == {"message": "Method Not Allowed"}
