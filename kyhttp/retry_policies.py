"""
Retry policies and attempt bookkeeping shared by both executors.

An AttemptRecord follows one request through an execution:

```
PENDING ──start()──> IN_FLIGHT ──settle(response)──┬─> ACCEPTED    (no transport error, status < 500)
   ^                                               ├─> PENDING     (rejected, attempts left)
   └───────────────────────────────────────────────┘
                                                   └─> EXHAUSTED   (rejected, no attempts left)
```

The single-request path drives these transitions through a tenacity retry
decorator; the batch path drives them one round at a time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    wait_random_exponential,
)

from .config import RetryConfig
from .exceptions import ServerError, TransportError
from .logging_config import get_logger
from .request import RequestSpec
from .response import Response

T = TypeVar("T")

logger = get_logger(__name__)


class AttemptState(Enum):
    """Lifecycle of a request within one execution."""

    PENDING = "pending"  # Waiting for its next attempt
    IN_FLIGHT = "in_flight"  # Transport call outstanding
    ACCEPTED = "accepted"  # Terminal: response accepted
    EXHAUSTED = "exhausted"  # Terminal: out of attempts


@dataclass
class AttemptRecord:
    """
    Attempt counter for one request during one execution.

    Attributes:
        spec: The request being executed
        index: Enqueue position in a batch run, None for single sends
        attempts: Attempts started so far
        state: Current state
        last_response: Response of the most recent attempt
    """

    spec: RequestSpec
    index: Optional[int] = None
    attempts: int = 0
    state: AttemptState = AttemptState.PENDING
    last_response: Optional[Response] = field(default=None, repr=False)

    @property
    def attempts_left(self) -> int:
        return self.spec.max_attempts - self.attempts

    def start(self) -> int:
        """Move PENDING → IN_FLIGHT and count the attempt."""
        if self.state is not AttemptState.PENDING:
            raise RuntimeError(f"Cannot start an attempt from state {self.state.value}")
        self.attempts += 1
        self.state = AttemptState.IN_FLIGHT
        return self.attempts

    def settle(self, response: Response) -> AttemptState:
        """Classify the response of the in-flight attempt."""
        if self.state is not AttemptState.IN_FLIGHT:
            raise RuntimeError(f"Cannot settle an attempt from state {self.state.value}")
        self.last_response = response
        if response.accepted:
            self.state = AttemptState.ACCEPTED
        elif self.attempts_left > 0:
            self.state = AttemptState.PENDING
        else:
            self.state = AttemptState.EXHAUSTED
        return self.state


def rejection_error(response: Response) -> Exception:
    """The retryable error describing a rejected response."""
    if response.transport_error is not None:
        return response.transport_error
    return ServerError(
        f"Server error: {response.status}",
        response=response,
        request=response.request,
    )


def create_retry_decorator(
    config: RetryConfig, max_attempts: int, request_id: Optional[str] = None
) -> Any:
    """
    Create a tenacity retry decorator for one request.

    Only TransportError and ServerError are retried; anything else (a hook
    failure, for instance) propagates on the attempt that raised it. When the
    attempts run out tenacity raises RetryError wrapping the last failure.

    Args:
        config: Retry configuration
        max_attempts: Total attempts allowed (retries + 1)
        request_id: Identifier used in log lines

    Returns:
        Configured tenacity retry decorator
    """

    def log_retry_attempt(retry_state: Any) -> None:
        if retry_state.outcome and retry_state.outcome.failed:
            exception = retry_state.outcome.exception()
            next_wait = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.debug(
                "Attempt rejected, retrying",
                request=request_id,
                error=f"{type(exception).__name__}: {exception}",
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
                wait_seconds=round(next_wait, 3),
            )

    if not config.backoff_enabled:
        wait_strategy: Any = wait_none()
    elif config.jitter:
        wait_strategy = wait_random_exponential(
            multiplier=config.multiplier,
            min=config.min_wait_seconds,
            max=config.max_wait_seconds,
        )
    else:
        wait_strategy = wait_exponential(
            multiplier=config.multiplier,
            min=config.min_wait_seconds,
            max=config.max_wait_seconds,
        )

    return retry(
        retry=retry_if_exception_type((TransportError, ServerError)),
        stop=stop_after_attempt(max_attempts),
        wait=wait_strategy,
        before_sleep=log_retry_attempt,
        reraise=False,
    )


class RetryPolicy:
    """Builds per-request retry wrappers from one RetryConfig."""

    def __init__(self, config: RetryConfig):
        self.config = config

    def wrap_operation(
        self,
        func: Callable[..., Awaitable[T]],
        max_attempts: int,
        request_id: Optional[str] = None,
    ) -> Callable[..., Awaitable[T]]:
        """
        Wrap an async attempt with retry logic.

        Args:
            func: The async function performing one attempt
            max_attempts: Total attempts allowed
            request_id: Identifier used in log lines

        Returns:
            Function wrapped with retry decorator
        """
        retry_decorator = create_retry_decorator(self.config, max_attempts, request_id)
        return retry_decorator(func)  # type: ignore[no-any-return]
