"""
Request description and the fluent builder that produces it.

A RequestSpec is the immutable input of both executors. RequestBuilder is
the chainable surface users write against::

    spec = (
        RequestBuilder()
        .post("https://httpbin.org/post")
        .header("X-Trace", "abc")
        .query({"page": 2})
        .json({"name": "kyhttp"})
        .retry(2)
        .build()
    )
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union
from urllib.parse import quote

from .codec import encode_json
from .hooks import AfterHook, BeforeHook

if TYPE_CHECKING:
    from .batch import BatchQueue
    from .client import KyClient
    from .response import Response


class HttpMethod(str, Enum):
    """HTTP methods supported by the builder."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


@dataclass(frozen=True)
class RequestSpec:
    """
    Immutable description of one HTTP call.

    Attributes:
        method: HTTP method
        url: Absolute URL, or a path relative to the client's base_url
        headers: Read-only header mapping
        query: Percent-encoded (key, value) pairs in insertion order
        body: Raw request body
        retries: Additional attempts allowed after the first
        before_hook: Called with this spec before every attempt
        after_hook: Called with the Response after every attempt
    """

    method: HttpMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    query: tuple[tuple[str, str], ...] = ()
    body: Optional[bytes] = None
    retries: int = 0
    before_hook: Optional[BeforeHook] = None
    after_hook: Optional[AfterHook] = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be non-negative")

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    @property
    def query_string(self) -> str:
        return "&".join(f"{key}={value}" for key, value in self.query)

    @property
    def target_url(self) -> str:
        """URL with the query string appended, if any."""
        query_string = self.query_string
        if not query_string:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{query_string}"


def _query_value(value: Any) -> str:
    # bool/None render the way form encoders traditionally cast them
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


def encode_query(params: Mapping[str, Any]) -> tuple[tuple[str, str], ...]:
    """Percent-encode query parameters per RFC 3986 (space becomes %20)."""
    return tuple(
        (quote(str(key), safe=""), quote(_query_value(value), safe=""))
        for key, value in params.items()
    )


class RequestBuilder:
    """
    Chainable builder for RequestSpec.

    A builder created through a KyClient (``client.get(url)``) can also send
    itself or join the client's batch queue.
    """

    def __init__(self, client: Optional["KyClient"] = None, retries: int = 0):
        self._client = client
        self._method = HttpMethod.GET
        self._url: Optional[str] = None
        self._headers: dict[str, str] = {}
        self._query: tuple[tuple[str, str], ...] = ()
        self._body: Optional[bytes] = None
        self._retries = max(0, retries)
        self._before_hook: Optional[BeforeHook] = None
        self._after_hook: Optional[AfterHook] = None

    def method(self, method: Union[HttpMethod, str], url: str) -> "RequestBuilder":
        self._method = HttpMethod(method.upper() if isinstance(method, str) else method)
        self._url = url
        return self

    def get(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.GET, url)

    def post(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.POST, url)

    def put(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.PUT, url)

    def patch(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.PATCH, url)

    def delete(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.DELETE, url)

    def head(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.HEAD, url)

    def options(self, url: str) -> "RequestBuilder":
        return self.method(HttpMethod.OPTIONS, url)

    def header(self, key: str, value: str) -> "RequestBuilder":
        """Set a header; a later call with the same key wins."""
        self._headers[key] = value
        return self

    def headers(self, headers: Mapping[str, str]) -> "RequestBuilder":
        for key, value in headers.items():
            self.header(key, value)
        return self

    def query(self, params: Mapping[str, Any]) -> "RequestBuilder":
        """Replace the query string with the encoded params."""
        self._query = encode_query(params)
        return self

    def json(self, value: Any) -> "RequestBuilder":
        self._body = encode_json(value)
        return self.header("Content-Type", "application/json")

    def body(self, content: Union[bytes, str]) -> "RequestBuilder":
        self._body = content.encode("utf-8") if isinstance(content, str) else content
        return self

    def retry(self, retries: int) -> "RequestBuilder":
        """Allow up to ``retries`` attempts after the first (clamped at zero)."""
        self._retries = max(0, retries)
        return self

    def before_request(self, hook: BeforeHook) -> "RequestBuilder":
        self._before_hook = hook
        return self

    def after_response(self, hook: AfterHook) -> "RequestBuilder":
        self._after_hook = hook
        return self

    def build(self) -> RequestSpec:
        if not self._url:
            raise ValueError("Request URL is not set; call get()/post()/... first")
        return RequestSpec(
            method=self._method,
            url=self._url,
            headers=MappingProxyType(dict(self._headers)),
            query=self._query,
            body=self._body,
            retries=self._retries,
            before_hook=self._before_hook,
            after_hook=self._after_hook,
        )

    def _require_client(self) -> "KyClient":
        if self._client is None:
            raise RuntimeError("RequestBuilder is not bound to a KyClient")
        return self._client

    async def send(self) -> "Response":
        """Build and send through the bound client."""
        return await self._require_client().send(self.build())

    async def send_json(self) -> Any:
        """Build, send and decode the body (None if it is not JSON)."""
        return await self._require_client().send_json(self.build())

    def add_to_batch(self, queue: Optional["BatchQueue"] = None) -> "RequestBuilder":
        """Append the built spec to ``queue`` or to the bound client's batch."""
        if queue is None:
            queue = self._require_client().batch
        queue.append(self.build())
        return self
