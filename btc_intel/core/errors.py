"""Error taxonomy for the aggregation core."""

from typing import Optional


class IntelError(Exception):
    """Base class for failures surfaced verbatim as a query's error message."""

    @property
    def message(self) -> str:
        return str(self)


class UpstreamError(IntelError):
    """A single external call failed (HTTP status, transport or JSON parse)."""

    STATUS = "status"
    TRANSPORT = "transport"
    PARSE = "parse"

    def __init__(self, kind: str, message: str,
                 status: Optional[int] = None,
                 url: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.url = url

    @classmethod
    def from_status(cls, status: int, url: Optional[str] = None) -> "UpstreamError":
        return cls(cls.STATUS, f"API error: {status}", status=status, url=url)

    @classmethod
    def from_transport(cls, exc: BaseException, url: Optional[str] = None) -> "UpstreamError":
        return cls(cls.TRANSPORT, f"API transport error: {type(exc).__name__}", url=url)

    @classmethod
    def from_parse(cls, url: Optional[str] = None) -> "UpstreamError":
        return cls(cls.PARSE, "API error: invalid JSON body", url=url)


class NormalizationError(IntelError):
    """A required field is missing or malformed in an otherwise successful response."""

    MISSING = "missing"
    MALFORMED = "malformed"

    def __init__(self, field: str, reason: str = MISSING):
        self.field = field
        self.reason = reason
        if reason == self.MISSING:
            super().__init__(f"Missing required field: {field}")
        else:
            super().__init__(f"Malformed field: {field}")
