"""Typed Prometheus query results.

The ``data`` object of a Prometheus API response is tagged by ``resultType``:

- scalar: ``[ts, "value"]``
- string: ``[ts, "text"]``
- vector: ``[{"metric": {...}, "value": [ts, "value"]}, ...]``
- matrix: ``[{"metric": {...}, "values": [[ts, "value"], ...]}, ...]``

``QueryResult`` is a closed union over those four shapes; callers match on
it exhaustively.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter, model_validator

RESULT_TYPES = frozenset({"scalar", "vector", "matrix", "string"})


def _split_pair(data):
    if isinstance(data, list | tuple):
        if len(data) != 2:
            raise ValueError(f"Expected [timestamp, value] pair, got {len(data)} items")
        return {"timestamp": data[0], "value": data[1]}
    return data


class SamplePair(BaseModel):
    """One (timestamp, value) sample. Timestamps are Unix seconds."""

    timestamp: float
    value: float

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data):
        data = _split_pair(data)
        # Prometheus encodes values as strings, including NaN and +/-Inf
        if isinstance(data, dict) and isinstance(data.get("value"), str):
            data = {**data, "value": float(data["value"])}
        return data


class StringSample(BaseModel):
    timestamp: float
    value: str

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data):
        return _split_pair(data)


class Sample(BaseModel):
    """A single labelled sample of an instant vector."""

    metric: dict[str, str] = Field(default_factory=dict)
    value: SamplePair

    model_config = {"frozen": True}


class SampleStream(BaseModel):
    """A labelled series of samples, ordered by time."""

    metric: dict[str, str] = Field(default_factory=dict)
    values: list[SamplePair] = Field(default_factory=list)

    model_config = {"frozen": True}


class ScalarResult(BaseModel):
    result_type: Literal["scalar"] = Field(alias="resultType")
    result: SamplePair


class StringResult(BaseModel):
    result_type: Literal["string"] = Field(alias="resultType")
    result: StringSample


class VectorResult(BaseModel):
    result_type: Literal["vector"] = Field(alias="resultType")
    result: list[Sample] = Field(default_factory=list)


class MatrixResult(BaseModel):
    result_type: Literal["matrix"] = Field(alias="resultType")
    result: list[SampleStream] = Field(default_factory=list)


QueryResult = Annotated[
    ScalarResult | VectorResult | MatrixResult | StringResult,
    Field(discriminator="result_type"),
]

query_result_adapter: TypeAdapter[QueryResult] = TypeAdapter(QueryResult)


class QueryResponse(BaseModel):
    """The JSON envelope returned by every Prometheus API endpoint."""

    status: Literal["success", "error"]
    data: dict | None = None
    error_type: str | None = Field(default=None, alias="errorType")
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
