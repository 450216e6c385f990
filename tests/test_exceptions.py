import pytest

from prosperian.clients.pronto import ProntoError
from prosperian.core.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    error_for_upstream_status,
)
from prosperian.routes.pronto import raise_for_pronto_error


@pytest.mark.parametrize("status_code, expected", [
    (401, AuthenticationError),
    (404, NotFoundError),
    (429, RateLimitError),
    (500, ExternalServiceError),
    (None, ExternalServiceError),
])
def test_error_for_upstream_status(status_code, expected):
    assert error_for_upstream_status(status_code) is expected


def test_error_envelope():
    error = NotFoundError(code="not_found", details={"id": "s1"})
    assert error.status_code == 404
    assert error.to_dict() == {
        "success": False,
        "error": "not_found",
        "message": "Resource not found",
        "details": {"id": "s1"},
    }


def test_raise_for_pronto_error_keeps_upstream_payload():
    with pytest.raises(NotFoundError) as exc_info:
        raise_for_pronto_error(ProntoError("HTTP 404", status_code=404, payload={"message": "gone"}), resource="search s1")
    assert exc_info.value.message == "search s1 not found"
    assert exc_info.value.details == {"pronto_error": {"message": "gone"}}


def test_raise_for_pronto_error_transport_failure():
    with pytest.raises(ExternalServiceError) as exc_info:
        raise_for_pronto_error(ProntoError("Pronto request failed: refused"))
    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"error": "Pronto request failed: refused"}
