from starlette.datastructures import Headers

from prosperian.core.logging import add_service_context
from prosperian.middleware.logging import filter_headers, skipped_paths
from prosperian.middleware.request_id import request_id_from_headers


def test_skipped_paths_follow_api_prefix():
    assert skipped_paths("/v2") == {"/v2/health", "/v2/health/live", "/v2/health/ready", "/metrics"}
    assert "/api/health/live" in skipped_paths("/api/")


def test_request_id_header_priority():
    assert request_id_from_headers(Headers({"X-Request-ID": "abc", "X-Correlation-ID": "def"})) == "abc"
    assert request_id_from_headers(Headers({"X-Correlation-ID": "def"})) == "def"


def test_request_id_from_traceparent():
    traceparent = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
    assert request_id_from_headers(Headers({"traceparent": traceparent})) == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert request_id_from_headers(Headers({"traceparent": "garbage"})) is None
    assert request_id_from_headers(Headers({})) is None


def test_sensitive_headers_are_redacted():
    headers = filter_headers({"X-API-KEY": "secret", "Accept": "application/json"})
    assert headers == {"X-API-KEY": "[REDACTED]", "Accept": "application/json"}


def test_service_context_processor():
    event = add_service_context(None, "info", {"event": "x", "service": "custom"})
    assert event["service"] == "custom"
    assert event["environment"] == "testing"
    assert "version" in event


def test_generated_request_id_on_response(api_client):
    response = api_client.get("/api/health/live")
    assert len(response.headers["X-Request-ID"]) == 32
