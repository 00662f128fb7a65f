"""
kyhttp: fluent asynchronous HTTP client

Chainable request building, single requests with retries, and concurrent
batches that retry only the requests that failed.
"""

from .batch import BatchExecutor, BatchQueue
from .client import KyClient, create_client
from .codec import decode_json, encode_json
from .config import BatchConfig, ClientConfig, LoggingConfig, RetryConfig
from .exceptions import (
    DecodeError,
    KyHTTPError,
    RetriesExhausted,
    ServerError,
    TransportError,
)
from .executor import SingleRequestExecutor
from .hooks import AfterHook, BeforeHook, HookInvoker
from .request import HttpMethod, RequestBuilder, RequestSpec
from .response import JSONResponse, Response
from .retry_policies import AttemptRecord, AttemptState
from .transport import HttpxTransport, TransportClient, TransportResult

__all__ = [
    "KyClient",
    "create_client",
    "RequestBuilder",
    "RequestSpec",
    "HttpMethod",
    "Response",
    "JSONResponse",
    "BatchQueue",
    "BatchExecutor",
    "SingleRequestExecutor",
    "HookInvoker",
    "BeforeHook",
    "AfterHook",
    "AttemptRecord",
    "AttemptState",
    "TransportClient",
    "TransportResult",
    "HttpxTransport",
    "ClientConfig",
    "RetryConfig",
    "BatchConfig",
    "LoggingConfig",
    "encode_json",
    "decode_json",
    "KyHTTPError",
    "TransportError",
    "ServerError",
    "RetriesExhausted",
    "DecodeError",
]

__version__ = "1.0.0"
