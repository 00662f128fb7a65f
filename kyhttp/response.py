"""Response value objects returned by the executors."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, NamedTuple, Optional

from .codec import decode_json

if TYPE_CHECKING:
    from .exceptions import TransportError
    from .request import RequestSpec
    from .transport import TransportResult


@dataclass(frozen=True)
class Response:
    """
    Outcome of one attempt.

    ``status`` is 0 when the transport failed before a status line arrived;
    ``transport_error`` then holds the mapped TransportError.

    Attributes:
        status: HTTP status code
        body: Raw body bytes
        headers: Response headers
        transport_error: Transport failure, if any
        request: The RequestSpec this answers
        attempts: Attempts made for the request when this was produced
        index: Enqueue position within a batch run (None for single sends)
    """

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    transport_error: Optional["TransportError"] = None
    request: Optional["RequestSpec"] = None
    attempts: int = 1
    index: Optional[int] = None

    @classmethod
    def from_result(
        cls,
        result: "TransportResult",
        request: "RequestSpec",
        attempts: int,
        index: Optional[int] = None,
    ) -> "Response":
        return cls(
            status=result.status,
            body=result.body,
            headers=result.headers,
            transport_error=result.error,
            request=request,
            attempts=attempts,
            index=index,
        )

    @property
    def accepted(self) -> bool:
        """No transport error and a status below 500 (4xx included)."""
        return self.transport_error is None and self.status < 500

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self, strict: bool = False) -> Any:
        """Decoded body; None when the body is not JSON unless ``strict``."""
        return decode_json(self.body, strict=strict)


class JSONResponse(NamedTuple):
    """A batch result with its body already decoded (None if not JSON)."""

    status: int
    body: Any
    response: Response

    @classmethod
    def from_response(cls, response: Response) -> "JSONResponse":
        return cls(status=response.status, body=response.json(), response=response)
