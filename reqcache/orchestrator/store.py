"""Store adapter handed to interceptors."""

import inspect
from typing import Any


class RequestsStore:
    """Wraps the host store (anything with ``get_state()`` and ``dispatch()``).

    ``dispatch_request`` dispatches a request action and returns the awaitable
    produced by the orchestrator.
    """

    def __init__(self, store: Any):
        self._store = store

    def get_state(self) -> Any:
        return self._store.get_state()

    def dispatch(self, action: Any) -> Any:
        return self._store.dispatch(action)

    def dispatch_request(self, action: Any) -> Any:
        result = self._store.dispatch(action)
        if not inspect.isawaitable(result):
            raise TypeError(f"Action '{action.type}' was not handled as a request action")
        return result
