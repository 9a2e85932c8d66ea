"""Decoding of Prometheus API envelopes into typed results."""

import json
import math

import pytest

from promplot.errors import BackendError, UnsupportedResultError
from promplot.models import (
    MatrixResult,
    SamplePair,
    ScalarResult,
    StringResult,
    VectorResult,
)
from promplot.prometheus import decode_response
from tests.helpers import api_body


class TestDecodeResponse:
    def test_matrix(self, two_series_matrix):
        result = decode_response(200, api_body("matrix", two_series_matrix))
        assert isinstance(result, MatrixResult)
        assert [s.metric["__name__"] for s in result.result] == ["a", "b"]
        assert result.result[0].values == [SamplePair(timestamp=1000, value=0.5)]

    def test_scalar(self):
        result = decode_response(200, api_body("scalar", [1435781451.781, "1"]))
        assert isinstance(result, ScalarResult)
        assert result.result.timestamp == 1435781451.781
        assert result.result.value == 1.0

    def test_vector(self):
        body = api_body(
            "vector",
            [
                {"metric": {"job": "api"}, "value": [1000, "3"]},
                {"metric": {"job": "db"}, "value": [1000, "4"]},
            ],
        )
        result = decode_response(200, body)
        assert isinstance(result, VectorResult)
        assert [s.value.value for s in result.result] == [3.0, 4.0]

    def test_string(self):
        result = decode_response(200, api_body("string", [1000, "hello"]))
        assert isinstance(result, StringResult)
        assert result.result.value == "hello"

    def test_special_float_values(self):
        body = api_body("matrix", [{"metric": {}, "values": [[1, "NaN"], [2, "+Inf"]]}])
        values = decode_response(200, body).result[0].values
        assert math.isnan(values[0].value)
        assert values[1].value == math.inf

    def test_empty_matrix(self):
        result = decode_response(200, api_body("matrix", []))
        assert isinstance(result, MatrixResult)
        assert result.result == []

    def test_unknown_result_type(self):
        with pytest.raises(UnsupportedResultError) as exc_info:
            decode_response(200, api_body("histogram", []))
        assert exc_info.value.result_type == "histogram"

    def test_error_envelope(self):
        body = json.dumps(
            {"status": "error", "errorType": "bad_data", "error": "parse error at char 3"}
        ).encode()
        with pytest.raises(BackendError) as exc_info:
            decode_response(400, body)
        assert exc_info.value.error_type == "bad_data"
        assert "parse error" in str(exc_info.value)

    def test_not_an_envelope(self):
        with pytest.raises(BackendError, match="HTTP 502"):
            decode_response(502, b"<html>Bad Gateway</html>")

    def test_malformed_result(self):
        with pytest.raises(BackendError):
            decode_response(200, api_body("scalar", [1, "2", "3"]))
