from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from fastapi.responses import JSONResponse

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    UPSTREAM_CALL_FAILED = "UpstreamCallFailed"
    EXTRACTION_FAILED = "ExtractionFailed"
    SCHEMA_INVALID = "SchemaInvalid"
    NON_NUMERIC_SCORE = "NonNumericScore"
    STORE_UNAVAILABLE = "StoreUnavailable"
    NOT_FOUND = "NotFound"


HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UPSTREAM_CALL_FAILED: 502,
    ErrorKind.EXTRACTION_FAILED: 502,
    ErrorKind.SCHEMA_INVALID: 502,
    ErrorKind.NON_NUMERIC_SCORE: 502,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.NOT_FOUND: 404,
}


@dataclass(frozen=True)
class PipelineError:
    kind: ErrorKind
    message: str
    raw: Optional[str] = None

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.kind, 500)

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind.value}
        if self.raw is not None:
            body["raw"] = self.raw
        return body


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one pipeline stage: either a value or a PipelineError."""
    value: Optional[T] = None
    error: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, raw: Optional[str] = None) -> "Result":
        return cls(error=PipelineError(kind, message, raw))


class StoreUnavailable(Exception):
    """The key-value backend is unreachable, misconfigured or returned an error."""
    kind = ErrorKind.STORE_UNAVAILABLE


class EntryNotFound(KeyError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entry_id: str):
        super().__init__(entry_id)
        self.entry_id = entry_id

    def __str__(self):
        return "Not found"


def error_response(err: PipelineError):
    return JSONResponse(status_code=err.status_code, content=err.to_dict())
