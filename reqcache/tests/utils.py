"""Shared test helpers: a minimal store and controllable drivers."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from reqcache.actions import Action
from reqcache.drivers.interfaces import Driver

INIT = '@@INIT'


class Store:
    """Minimal redux-like store: reducer, middleware chain, dispatch log."""

    def __init__(self, reducer: Callable[[Any, Action], Any], middleware: Optional[List[Any]] = None, state: Any = None):
        self.reducer = reducer
        self.dispatched: List[Action] = []
        self.state = reducer(state, Action(type=INIT))

        dispatch = self._base_dispatch
        for mw in reversed(middleware or []):
            dispatch = mw(self)(dispatch)
        self._dispatch = dispatch

    def _base_dispatch(self, action: Action) -> Action:
        self.dispatched.append(action)
        self.state = self.reducer(self.state, action)
        return action

    def get_state(self) -> Any:
        return self.state

    def dispatch(self, action: Action) -> Any:
        return self._dispatch(action)

    def dispatched_types(self) -> List[str]:
        return [action.type for action in self.dispatched if action.type != INIT]


class EchoDriver(Driver):
    """Answers ``{'data': <url>}`` or a configured response per url."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.calls: List[Dict[str, Any]] = []

    async def execute(self, request: Dict[str, Any], action: Any) -> Dict[str, Any]:
        self.calls.append(request)
        url = request.get('url')
        await asyncio.sleep(0)
        if url in self.errors:
            raise self.errors[url]
        return self.responses.get(url, {'data': url})


class BlockingDriver(Driver):
    """Blocks every call until ``release()``; can be told to ignore cancellation."""

    def __init__(self, ignore_cancel: bool = False, cancellable: bool = True):
        self.ignore_cancel = ignore_cancel
        self.cancellable = cancellable
        self.calls: List[Dict[str, Any]] = []
        self.cancelled_calls = 0
        self._released = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    async def execute(self, request: Dict[str, Any], action: Any) -> Dict[str, Any]:
        self.calls.append(request)
        try:
            await self._released.wait()
        except asyncio.CancelledError:
            self.cancelled_calls += 1
            if not self.ignore_cancel:
                raise
            await self._released.wait()
        return {'data': request.get('url')}


async def settle(times: int = 5) -> None:
    """Let scheduled tasks run."""
    for _ in range(times):
        await asyncio.sleep(0)
