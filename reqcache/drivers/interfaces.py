"""Driver contract: the capability that actually performs a call."""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict


class Driver(ABC):
    """Interface for drivers executing request descriptors.

    ``execute`` is run inside its own task, so cancelling a call cancels that task.
    Drivers that cannot be interrupted set ``cancellable = False``; their calls are
    then never recorded as pending and cancelling them is a no-op.
    """

    cancellable: bool = True

    @abstractmethod
    async def execute(self, request: Dict[str, Any], action: Any) -> Dict[str, Any]:
        """Perform one call.

        Args:
            request: Request descriptor `dict`
            action: The request action the call belongs to `Action`

        Returns:
            Response mapping, conventionally with a ``data`` entry
        """
        pass

    async def close(self) -> None:
        """Release resources held by the driver."""
        return None


class CallableDriver(Driver):
    """Adapts a plain ``(request, action)`` callable to the driver contract."""

    def __init__(self, func: Callable[[Dict[str, Any], Any], Any], cancellable: bool = True):
        self.func = func
        self.cancellable = getattr(func, 'cancellable', cancellable)

    async def execute(self, request: Dict[str, Any], action: Any) -> Dict[str, Any]:
        result = self.func(request, action)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f'CallableDriver({getattr(self.func, "__name__", self.func)!r})'


def as_driver(candidate: Any) -> Driver:
    """Coerce a configured value into a driver."""
    if isinstance(candidate, Driver):
        return candidate
    if callable(candidate):
        return CallableDriver(candidate)
    raise TypeError(f'Expected a Driver or a callable, got {type(candidate).__name__}')
