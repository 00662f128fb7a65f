"""
Concurrent batch execution with per-request retry triage.

A batch run works in rounds. Every round submits all pending requests to
the transport at once, waits until none is in flight, then triages: rejected
requests with attempts left move to the next round, everything else is
final. Exhausted requests are returned with their last failing Response
rather than raised, unlike the single-request path.

Results come back in round-completion order (round 1 finishers first, then
round 2, ...). Each Response carries ``index``, its enqueue position, and
``run_batch(..., ordered=True)`` sorts by it.
"""

import asyncio
from collections.abc import Iterable, Iterator
from typing import Union

from .config import BatchConfig
from .exceptions import TransportError
from .hooks import HookInvoker
from .logging_config import get_logger
from .request import RequestSpec
from .response import Response
from .retry_policies import AttemptRecord, AttemptState
from .transport import TransportClient, TransportResult

logger = get_logger(__name__)


class BatchQueue:
    """
    Requests accumulated for the next batch run.

    The same spec may be appended several times; every entry is executed
    independently. Callers must not mutate a queue while a run over it is
    in progress.
    """

    def __init__(self, specs: Iterable[RequestSpec] = ()):
        self._items: list[RequestSpec] = list(specs)

    def append(self, spec: RequestSpec) -> None:
        self._items.append(spec)

    def extend(self, specs: Iterable[RequestSpec]) -> None:
        self._items.extend(specs)

    def drain(self) -> list[RequestSpec]:
        """Remove and return every queued spec, in enqueue order."""
        items, self._items = self._items, []
        return items

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[RequestSpec]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"BatchQueue(size={len(self._items)})"


def _task_result(
    task: "asyncio.Task[TransportResult]",
) -> Union[TransportResult, BaseException]:
    """Outcome of a finished call; a raised TransportError becomes a result."""
    exc = task.exception()
    if exc is None:
        return task.result()
    if isinstance(exc, TransportError):
        return TransportResult(status=0, error=exc)
    return exc


class BatchExecutor:
    """Drains a BatchQueue and runs it in concurrent rounds."""

    def __init__(
        self,
        transport: TransportClient,
        config: BatchConfig,
        hooks: HookInvoker,
    ):
        self._transport = transport
        self.config = config
        self._hooks = hooks

    async def _wait_for_round(
        self, tasks: list["asyncio.Task[TransportResult]"], round_number: int
    ) -> None:
        """Block until every call of the round has completed."""
        in_flight = set(tasks)
        while in_flight:
            _, in_flight = await asyncio.wait(
                in_flight, timeout=self.config.poll_interval
            )
            if in_flight:
                logger.debug(
                    "Batch round still in flight",
                    round=round_number,
                    pending_tasks=len(in_flight),
                    transport_in_flight=self._transport.in_flight,
                )

    async def _run_round(
        self, pending: list[AttemptRecord], round_number: int
    ) -> list[Response]:
        for record in pending:
            await self._hooks.invoke_before(record.spec)
            record.start()

        tasks = [
            asyncio.create_task(
                self._transport.execute(
                    record.spec.method.value,
                    record.spec.target_url,
                    record.spec.headers,
                    record.spec.body,
                )
            )
            for record in pending
        ]

        try:
            await self._wait_for_round(tasks, round_number)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        results = [_task_result(task) for task in tasks]
        failure = next(
            (result for result in results if isinstance(result, BaseException)), None
        )
        if failure is not None:
            raise failure

        responses = []
        for record, result in zip(pending, results):
            response = Response.from_result(
                result, record.spec, record.attempts, index=record.index
            )
            await self._hooks.invoke_after(response)
            record.settle(response)
            responses.append(response)
        return responses

    async def run_batch(self, queue: BatchQueue, ordered: bool = False) -> list[Response]:
        """
        Execute every queued request, retrying rejected ones in later rounds.

        Args:
            queue: The queue to drain; it is empty afterwards, even on error
            ordered: Sort results by enqueue position instead of completion order

        Returns:
            One final Response per queued entry
        """
        pending = [
            AttemptRecord(spec, index=index)
            for index, spec in enumerate(queue.drain())
        ]
        if not pending:
            return []

        results: list[Response] = []
        round_number = 0
        total = len(pending)

        try:
            while pending:
                round_number += 1
                responses = await self._run_round(pending, round_number)

                next_pending = []
                for record, response in zip(pending, responses):
                    if record.state is AttemptState.PENDING:
                        next_pending.append(record)
                    else:
                        results.append(response)

                logger.debug(
                    "Batch round complete",
                    round=round_number,
                    submitted=len(pending),
                    finished=len(pending) - len(next_pending),
                    retrying=len(next_pending),
                )
                pending = next_pending
        finally:
            queue.clear()

        failed = sum(1 for response in results if not response.accepted)
        logger.info(
            "Batch finished",
            requests=total,
            rounds=round_number,
            failed=failed,
        )

        if ordered:
            results.sort(key=lambda response: response.index)
        return results
