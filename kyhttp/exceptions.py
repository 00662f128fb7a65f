"""
Exception hierarchy for the kyhttp client library.

The hierarchy encodes retry semantics: the executors retry exactly the
errors that indicate a transient infrastructure problem and nothing else.

**Exception Hierarchy:**

```
KyHTTPError (base exception)
├── TransportError (retryable - network, DNS, connect, redirect failures)
├── ServerError (retryable - HTTP status >= 500)
├── RetriesExhausted (single request ran out of attempts)
└── DecodeError (strict JSON decoding of a body failed)
```

**Exception Flow:**

```
httpx.ConnectError       → TransportError   → Retry
httpx.TimeoutException   → TransportError   → Retry
HTTP 500..599            → ServerError      → Retry
HTTP < 500 (incl. 4xx)   → accepted         → No Retry
budget exhausted (send)  → RetriesExhausted → raised to caller
budget exhausted (batch) → last Response    → returned to caller
```

Hook exceptions are not part of this hierarchy: whatever a hook raises
propagates unchanged and aborts the attempt or batch round it ran in.
"""

from typing import Any, Optional


class KyHTTPError(Exception):
    """
    Base exception for all library errors.

    Attributes:
        message: Human-readable error description
        response: The kyhttp Response involved (if available)
        request: The RequestSpec involved (if available)
    """

    def __init__(
        self,
        message: str = "",
        response: Optional[Any] = None,
        request: Optional[Any] = None,
    ):
        self.message = message
        self.response = response
        self.request = request
        super().__init__(message)


class TransportError(KyHTTPError):
    """
    The transport failed before an HTTP status was received.

    **When This Occurs:**
    - DNS resolution failures
    - Connection refused or reset
    - Too many redirects
    - Timeouts, when a timeout has been configured

    Retried by both executors. In a batch round a transport failure is
    triaged like a 5xx response.
    """

    pass


class ServerError(KyHTTPError):
    """
    The server answered with a 5xx status.

    Counts toward the same retry budget as TransportError.
    """

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.response, "status", None)


class RetriesExhausted(KyHTTPError):
    """
    A single request used every attempt without an accepted response.

    Only raised by the single-request path; a batch run returns the last
    failing Response instead.

    Attributes:
        retries: The configured retry budget (attempts minus one)
        response: The Response of the final attempt
    """

    def __init__(
        self,
        message: str = "",
        retries: int = 0,
        response: Optional[Any] = None,
        request: Optional[Any] = None,
    ):
        self.retries = retries
        super().__init__(message, response=response, request=request)


class DecodeError(KyHTTPError):
    """A body could not be decoded as JSON in strict mode."""

    def __init__(self, message: str = "", body: Optional[bytes] = None):
        self.body = body
        super().__init__(message)
