"""Tests for HTTP error classification"""

import httpx
import pytest

from midaz_client.infrastructure.http.errors import (
    error_from_response,
    error_from_status,
    parse_error_body,
)
from midaz_client.shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    InternalError,
    MissingParameterError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    UnprocessableError,
    ValidationError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "status_code,error_cls,kind",
    [
        (400, ValidationError, ErrorKind.VALIDATION),
        (401, AuthenticationError, ErrorKind.AUTHENTICATION),
        (403, AuthorizationError, ErrorKind.AUTHORIZATION),
        (404, NotFoundError, ErrorKind.NOT_FOUND),
        (408, RequestTimeoutError, ErrorKind.TIMEOUT),
        (409, ConflictError, ErrorKind.CONFLICT),
        (422, UnprocessableError, ErrorKind.UNPROCESSABLE),
        (429, RateLimitError, ErrorKind.RATE_LIMIT),
        (500, InternalError, ErrorKind.INTERNAL),
        (502, InternalError, ErrorKind.INTERNAL),
        (503, NetworkError, ErrorKind.NETWORK),
        (504, RequestTimeoutError, ErrorKind.TIMEOUT),
        (418, InternalError, ErrorKind.INTERNAL),
    ],
)
def test_status_mapping(status_code, error_cls, kind):
    """Test every status maps to its error kind"""
    error = error_from_status("GetAccount", status_code, "msg")

    assert type(error) is error_cls
    assert error.kind is kind
    assert error.status_code == status_code


@pytest.mark.unit
def test_parse_error_body_prefers_message():
    """Test message wins over error and title"""
    body = b'{"message": "m", "error": "e", "title": "t", "code": "0001"}'

    assert parse_error_body(400, body) == ("m", "0001")


@pytest.mark.unit
def test_parse_error_body_fallbacks():
    """Test fallbacks for missing or non-JSON bodies"""
    assert parse_error_body(400, b'{"error": "bad"}') == ("bad", None)
    assert parse_error_body(400, b'{"title": "Bad"}') == ("Bad", None)
    assert parse_error_body(500, b"gateway exploded") == (
        "gateway exploded",
        None,
    )
    assert parse_error_body(500, b"") == ("empty response from server", None)
    assert parse_error_body(500, b"{}") == (
        "API error with status code 500",
        None,
    )


@pytest.mark.unit
def test_error_from_response_keeps_request_id_and_resource():
    """Test request id and resource context are attached"""
    response = httpx.Response(
        404,
        json={"code": "0007", "message": "ledger not found"},
        headers={"X-Request-ID": "req-42"},
    )

    error = error_from_response(
        "GetLedger", response, resource="ledger", resource_id="l-1"
    )

    assert isinstance(error, NotFoundError)
    assert error.request_id == "req-42"
    assert error.code == "0007"
    assert str(error) == (
        "not_found error for ledger l-1 during GetLedger: ledger not found"
    )


@pytest.mark.unit
def test_resource_context_only_for_resource_errors():
    """Test auth errors do not claim a resource"""
    error = error_from_status(
        "GetLedger", 401, "expired", resource="ledger", resource_id="l-1"
    )

    assert error.resource is None
    assert str(error) == "authentication error during GetLedger: expired"


@pytest.mark.unit
def test_missing_parameter_error_names_parameter():
    """Test the parameter name is part of the message"""
    error = MissingParameterError("GetAssetRate", "organizationID")

    assert error.parameter == "organizationID"
    assert error.kind is ErrorKind.MISSING_PARAMETER
    assert "organizationID" in str(error)


@pytest.mark.unit
def test_configuration_error_without_operation():
    """Test configuration errors read without an operation"""
    error = ConfigurationError("No base URL configured for 'transaction'")

    assert str(error) == (
        "configuration error: No base URL configured for 'transaction'"
    )
