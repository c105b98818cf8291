import json

import pytest
from google.genai import errors as genai_errors
from pydantic import ValidationError

from econ_shorts.errors import (
    EmptyResponseError,
    ErrorKind,
    MalformedResponseError,
    QuotaExceededError,
    classify_error,
)
from econ_shorts.models import Script


@pytest.mark.parametrize(
    ("message", "kind"),
    [
        ("429 Too Many Requests", ErrorKind.TRANSIENT),
        ("RESOURCE_EXHAUSTED: try again later", ErrorKind.TRANSIENT),
        (
            "429 RESOURCE_EXHAUSTED. Quota exceeded for metric: "
            "generate_content_free_tier_requests, limit: 0",
            ErrorKind.QUOTA_EXCEEDED,
        ),
        ("429 GenerateRequestsPerDayPerProjectPerModel per_day", ErrorKind.QUOTA_EXCEEDED),
        ("Requested entity was not found.", ErrorKind.INVALID_CREDENTIAL),
        ("401 Unauthorized", ErrorKind.INVALID_CREDENTIAL),
        ("API key not valid. Please pass a valid API key.", ErrorKind.INVALID_CREDENTIAL),
        ("500 Internal error", ErrorKind.UNKNOWN),
        ("", ErrorKind.UNKNOWN),
    ],
)
def test_classify_by_message(message, kind):
    assert classify_error(Exception(message)) is kind


def test_classify_studio_errors():
    assert classify_error(QuotaExceededError()) is ErrorKind.QUOTA_EXCEEDED
    assert classify_error(EmptyResponseError()) is ErrorKind.MALFORMED
    assert classify_error(MalformedResponseError("bad")) is ErrorKind.MALFORMED


def test_classify_parse_errors():
    with pytest.raises(ValidationError) as excinfo:
        Script.model_validate_json('{"title": "x"}')
    assert classify_error(excinfo.value) is ErrorKind.MALFORMED

    with pytest.raises(json.JSONDecodeError) as excinfo:
        json.loads("not json")
    assert classify_error(excinfo.value) is ErrorKind.MALFORMED


def test_classify_api_errors():
    rate_limited = genai_errors.APIError(
        429,
        {
            "error": {
                "code": 429,
                "message": "Resource has been exhausted (e.g. check quota).",
                "status": "RESOURCE_EXHAUSTED",
            },
        },
    )
    assert classify_error(rate_limited) is ErrorKind.TRANSIENT

    bad_key = genai_errors.APIError(
        400,
        {
            "error": {
                "code": 400,
                "message": "API key not valid. Please pass a valid API key.",
                "status": "INVALID_ARGUMENT",
            },
        },
    )
    assert classify_error(bad_key) is ErrorKind.INVALID_CREDENTIAL


def test_quota_error_is_flagged():
    error = QuotaExceededError()
    assert error.is_quota_error
    assert "API 할당량" in str(error)
