"""
Hosted backend client tests - requests are served by httpx.MockTransport
"""
import asyncio
import json

import httpx
import pytest

from app.database.backend import BackendError, HostedBackendClient


def make_client(handler, **kwargs):
    return HostedBackendClient(
        "https://project.example.co/",
        "anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_invoke_posts_to_function():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"id": "lead-1"}})

    result = asyncio.run(make_client(handler).invoke("submit-lead", {"name": "Jane"}))

    assert result["data"]["id"] == "lead-1"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://project.example.co/functions/v1/submit-lead"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["authorization"] == "Bearer anon-key"
    assert json.loads(request.content) == {"name": "Jane"}


def test_invoke_uses_access_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True})

    asyncio.run(make_client(handler, access_token="user-token").invoke("submit-lead", {}))
    assert seen[0].headers["authorization"] == "Bearer user-token"


def test_invoke_reports_function_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Duplicate lead"})

    with pytest.raises(BackendError, match="Duplicate lead"):
        asyncio.run(make_client(handler).invoke("submit-lead", {}))


def test_http_error_message_is_extracted():
    def handler(request):
        return httpx.Response(500, json={"message": "relation does not exist"})

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(make_client(handler).invoke("submit-lead", {}))
    assert exc_info.value.message == "relation does not exist"
    assert exc_info.value.status_code == 500


def test_http_error_without_json_body():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(BackendError, match="Bad Gateway"):
        asyncio.run(make_client(handler).invoke("submit-lead", {}))


def test_timeout_becomes_backend_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(BackendError, match="Timeout"):
        asyncio.run(make_client(handler).invoke("submit-lead", {}))


def test_insert_returns_first_row():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[{"id": "row-1", "name": "Partial Submission"}])

    row = asyncio.run(make_client(handler).insert("quiz_leads", {"name": "Partial Submission"}))

    assert row == {"id": "row-1", "name": "Partial Submission"}
    assert seen[0].url.path == "/rest/v1/quiz_leads"
    assert seen[0].headers["prefer"] == "return=representation"


def test_select_builds_equality_filters():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"doctor_id": "doc-1"}])

    rows = asyncio.run(make_client(handler).select(
        "quiz_shares", {"share_key": "abc"}, columns="doctor_id", order="created_at.asc", limit=1
    ))

    assert rows == [{"doctor_id": "doc-1"}]
    params = seen[0].url.params
    assert params["select"] == "doctor_id"
    assert params["share_key"] == "eq.abc"
    assert params["order"] == "created_at.asc"
    assert params["limit"] == "1"


def test_unconfigured_client():
    client = HostedBackendClient(None, None)
    assert client.is_configured is False
    with pytest.raises(BackendError, match="not configured"):
        asyncio.run(client.invoke("submit-lead", {}))
