"""Action model and helpers for request, lifecycle and control actions."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Union

from reqcache.constants import ABORT_REQUESTS, ABORT_SUFFIX, ERROR_SUFFIX, RESET_REQUESTS, SUCCESS_SUFFIX

KeyDescriptor = Union[str, Dict[str, str]]


@dataclass
class Action:
    """A dispatched action.

    Request actions carry ``payload['request']``, a request descriptor mapping or a list
    of them. Lifecycle actions carry the request action under ``meta['request_action']``.
    """

    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    error: bool = False

    def evolve(self, **changes) -> 'Action':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def with_request(self, request: Any) -> 'Action':
        """Return a copy whose payload carries another request descriptor."""
        return replace(self, payload={**self.payload, 'request': request})


def success(action_type: str) -> str:
    return f'{action_type}{SUCCESS_SUFFIX}'


def error(action_type: str) -> str:
    return f'{action_type}{ERROR_SUFFIX}'


def abort(action_type: str) -> str:
    return f'{action_type}{ABORT_SUFFIX}'


def get_action_payload(action: Action) -> Dict[str, Any]:
    return action.payload or {}


def get_request_key(action: Action) -> str:
    return (action.meta or {}).get('request_key') or ''


def get_dedup_key(action: Action) -> str:
    """Identity used to correlate in-flight calls and cache slices."""
    return action.type + get_request_key(action)


def is_response_action(action: Action) -> bool:
    return 'request_action' in (action.meta or {})


def get_request_action_from_response(action: Action) -> Action:
    return action.meta['request_action']


def is_request_action(action: Action) -> bool:
    """Default predicate: carries a request descriptor and is not a lifecycle action."""
    return 'request' in get_action_payload(action) and not is_response_action(action)


def is_batch_request(action: Action) -> bool:
    return isinstance(get_action_payload(action).get('request'), list)


def is_action_rehydrated(action: Action) -> bool:
    """Whether the outcome is supplied up front instead of by a driver call."""
    meta = action.meta or {}
    return bool(meta.get('cache_response') or meta.get('ssr_response') or meta.get('ssr_error'))


def create_success_action(action: Action, response: Dict[str, Any]) -> Action:
    return Action(
        type=success(action.type),
        payload={'data': response.get('data'), 'response': response},
        meta={**(action.meta or {}), 'request_action': action},
    )


def create_error_action(action: Action, error_payload: Any) -> Action:
    return Action(
        type=error(action.type),
        payload={'error': error_payload},
        meta={**(action.meta or {}), 'request_action': action},
        error=True,
    )


def create_abort_action(action: Action) -> Action:
    return Action(
        type=abort(action.type),
        payload={},
        meta={**(action.meta or {}), 'request_action': action},
    )


def abort_requests(requests: Optional[List[KeyDescriptor]] = None) -> Action:
    """Cancel pending calls, all of them when no key list is given."""
    payload = {} if requests is None else {'requests': list(requests)}
    return Action(type=ABORT_REQUESTS, payload=payload)


def reset_requests(requests: Optional[List[KeyDescriptor]] = None, abort_pending: bool = False) -> Action:
    """Reset cached query state, optionally cancelling pending calls too."""
    payload: Dict[str, Any] = {'abort_pending': abort_pending}
    if requests is not None:
        payload['requests'] = list(requests)
    return Action(type=RESET_REQUESTS, payload=payload)


def get_keys(requests: Iterable[KeyDescriptor]) -> List[str]:
    """Turn abort/reset key descriptors into dedup keys."""
    keys = []
    for descriptor in requests:
        if isinstance(descriptor, dict):
            keys.append(descriptor['request_type'] + (descriptor.get('request_key') or ''))
        else:
            keys.append(descriptor)
    return keys
