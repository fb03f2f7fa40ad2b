"""Interceptor slots for the global and per-action hook layers."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from reqcache.config.models import RequestsConfig

EVENT_FLAGS = {
    'on_request': 'run_on_request',
    'on_success': 'run_on_success',
    'on_error': 'run_on_error',
    'on_abort': 'run_on_abort',
}


class InterceptorLayer(str, Enum):
    GLOBAL = 'global'
    ACTION = 'action'


@dataclass(frozen=True)
class InterceptorSlot:
    """One optional hook for one event, with its enable flag."""

    event: str
    layer: InterceptorLayer
    hook: Optional[Callable[..., Any]]
    enabled: bool = True

    @property
    def active(self) -> bool:
        return self.hook is not None and self.enabled


async def invoke(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a hook, awaiting its result when it returns an awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class InterceptorPipeline:
    """Builds the ordered slots of an event: global hook first, then the action's own hook.

    ``meta['run_on_<event>'] = False`` disables the global slot only.
    """

    def __init__(self, config: RequestsConfig):
        self.config = config

    def slots(self, event: str, action: Any) -> List[InterceptorSlot]:
        meta = action.meta or {}
        return [
            InterceptorSlot(event, InterceptorLayer.GLOBAL, self.config.hook(event), enabled=meta.get(EVENT_FLAGS[event], True) is not False),
            InterceptorSlot(event, InterceptorLayer.ACTION, meta.get(event)),
        ]

    def active_slots(self, event: str, action: Any) -> List[InterceptorSlot]:
        return [slot for slot in self.slots(event, action) if slot.active]

    def run_request(self, action: Any, store: Any) -> Any:
        """Run the on-request chain; each hook may replace the request descriptor.

        Returns the final action while hooks answer synchronously. Once a hook
        returns an awaitable, the rest of the chain is returned as a coroutine.
        """
        slots = self.active_slots('on_request', action)
        for index, slot in enumerate(slots):
            request = slot.hook(action.payload['request'], action, store)
            if inspect.isawaitable(request):
                return self._finish_request(action, store, request, slots[index + 1:])
            action = action.with_request(request)
        return action

    async def _finish_request(self, action: Any, store: Any, request: Awaitable[Any], slots: List[InterceptorSlot]) -> Any:
        action = action.with_request(await request)
        for slot in slots:
            action = action.with_request(await invoke(slot.hook, action.payload['request'], action, store))
        return action
