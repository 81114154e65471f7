"""Tests for contentful_converge.core.errors: HTTP failure classification."""

from unittest.mock import Mock

import pytest
import requests

from contentful_converge.core.errors import (
    ApiError,
    ErrorKind,
    error_from_exception,
    error_from_response,
    is_not_found,
    kind_for_status,
)


def _response(status_code, body=None, reason="", invalid_json=False):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    if invalid_json:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = body
    return response


@pytest.mark.parametrize(
    "status, kind",
    [
        (404, ErrorKind.NOT_FOUND),
        (409, ErrorKind.CONFLICT),
        (400, ErrorKind.VALIDATION),
        (422, ErrorKind.VALIDATION),
        (401, ErrorKind.TRANSPORT),
        (429, ErrorKind.TRANSPORT),
        (500, ErrorKind.TRANSPORT),
    ],
)
def test_kind_for_status(status, kind):
    assert kind_for_status(status) is kind


class TestErrorFromResponse:
    def test_validation_body(self):
        body = {
            "sys": {"type": "Error", "id": "ValidationFailed"},
            "message": "Validation error",
            "details": {
                "errors": [
                    {"name": "size", "path": ["fields", "title", "en-US"], "details": "Too long"},
                    {"name": "required", "path": ["fields", "slug"], "details": "Required"},
                ]
            },
            "requestId": "req-1",
        }

        err = error_from_response(_response(422, body, "Unprocessable Entity"))

        assert err.kind is ErrorKind.VALIDATION
        assert err.message == "Validation error"
        assert [d.path for d in err.details] == [
            ["fields", "title", "en-US"],
            ["fields", "slug"],
        ]
        assert err.details[0].details == "Too long"
        assert err.status_code == 422
        assert err.request_id == "req-1"

    def test_message_falls_back_to_error_id(self):
        body = {"sys": {"type": "Error", "id": "VersionMismatch"}}

        err = error_from_response(_response(409, body, "Conflict"))

        assert err.kind is ErrorKind.CONFLICT
        assert err.message == "VersionMismatch"

    def test_message_falls_back_to_reason(self):
        err = error_from_response(_response(404, {}, "Not Found"))

        assert err.kind is ErrorKind.NOT_FOUND
        assert err.message == "Not Found"

    def test_unparseable_body_is_transport(self):
        err = error_from_response(
            _response(404, reason="Not Found", invalid_json=True)
        )

        assert err.kind is ErrorKind.TRANSPORT
        assert err.message == "HTTP 404: Not Found"

    def test_non_dict_body_is_transport(self):
        err = error_from_response(_response(502, ["oops"], "Bad Gateway"))

        assert err.kind is ErrorKind.TRANSPORT
        assert err.message == "HTTP 502: Bad Gateway"

    def test_missing_reason(self):
        err = error_from_response(_response(503, invalid_json=True))

        assert err.message == "HTTP 503"


def test_error_from_exception_keeps_message():
    err = error_from_exception(requests.ConnectionError("Connection refused"))

    assert err.kind is ErrorKind.TRANSPORT
    assert err.message == "Connection refused"
    assert err.status_code is None


def test_is_not_found():
    assert is_not_found(ApiError(ErrorKind.NOT_FOUND, "x"))
    assert not is_not_found(ApiError(ErrorKind.CONFLICT, "x"))
    assert not is_not_found(KeyError("x"))


def test_api_error_str_is_message():
    err = ApiError(ErrorKind.VALIDATION, "Validation error", status_code=422)

    assert str(err) == "Validation error"
    assert "validation" in repr(err)
