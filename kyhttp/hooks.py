"""User hooks run around every attempt."""

import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Protocol, Union

if TYPE_CHECKING:
    from .request import RequestSpec
    from .response import Response


class BeforeHook(Protocol):
    """Called with the RequestSpec before each attempt."""

    def __call__(self, spec: "RequestSpec") -> Union[None, Awaitable[None]]: ...


class AfterHook(Protocol):
    """Called with the Response after each attempt, accepted or not."""

    def __call__(self, response: "Response") -> Union[None, Awaitable[None]]: ...


async def _call(hook: Any, argument: Any) -> None:
    result = hook(argument)
    if inspect.isawaitable(result):
        await result


class HookInvoker:
    """
    Runs the optional hooks of a request.

    Hooks may be plain functions or coroutine functions. Whatever a hook
    raises propagates to the caller; the attempt or round it ran in is
    abandoned.
    """

    async def invoke_before(self, spec: "RequestSpec") -> bool:
        """Run the before hook. Returns whether a hook was executed."""
        hook: Optional[BeforeHook] = spec.before_hook
        if hook is None:
            return False
        await _call(hook, spec)
        return True

    async def invoke_after(self, response: "Response") -> bool:
        """Run the after hook of the request that produced ``response``."""
        spec = response.request
        hook: Optional[AfterHook] = spec.after_hook if spec is not None else None
        if hook is None:
            return False
        await _call(hook, response)
        return True
