"""Reducer of a single query slice."""

from typing import Any, Callable, Dict, Optional

from reqcache.actions import abort, error, get_dedup_key, get_keys, get_request_action_from_response, is_response_action, success
from reqcache.constants import RESET_REQUESTS

QueryState = Dict[str, Any]


class QueryReducer:
    """Folds the lifecycle of the query identified by ``key`` into ``{'data', 'error', 'pending'}``.

    Mutations can rewrite this query's data through ``meta['mutations'][key]``: a callable
    ``(data, mutation_data) -> data`` applied on the mutation's success, or a mapping with
    optimistic ``local(data)`` / ``revert(data)`` callables and an optional ``success``
    updater.
    """

    def __init__(
        self,
        key: str,
        is_request_read_only: Callable[[Any], bool],
        multiple: bool = False,
        get_default_data: Optional[Callable[[bool], Any]] = None,
    ):
        self.key = key
        self.is_request_read_only = is_request_read_only
        self.multiple = multiple
        self.get_default_data = get_default_data

    def default_data(self) -> Any:
        if self.get_default_data is not None:
            return self.get_default_data(self.multiple)
        return [] if self.multiple else None

    def initial_state(self) -> QueryState:
        return {'data': self.default_data(), 'error': None, 'pending': 0}

    def _targets(self, request_action: Any) -> bool:
        return get_dedup_key(request_action) == self.key and self.is_request_read_only(request_action)

    def __call__(self, state: Optional[QueryState], action: Any) -> QueryState:
        if state is None:
            state = self.initial_state()

        if action.type == RESET_REQUESTS:
            return self._reset(state, action)

        if is_response_action(action):
            request_action = get_request_action_from_response(action)
            if self._targets(request_action):
                return self._on_response(state, action, request_action)
            return self._apply_mutation(state, action, request_action)

        if 'request' in (action.payload or {}):
            if self._targets(action):
                return {**state, 'error': None, 'pending': state['pending'] + 1}
            return self._apply_mutation(state, action, None)

        return state

    def _on_response(self, state: QueryState, action: Any, request_action: Any) -> QueryState:
        pending = max(0, state['pending'] - 1)
        if action.type == success(request_action.type):
            return {**state, 'data': action.payload.get('data'), 'error': None, 'pending': pending}
        if action.type == error(request_action.type):
            return {**state, 'data': self.default_data(), 'error': action.payload.get('error'), 'pending': pending}
        if action.type == abort(request_action.type):
            return {**state, 'pending': pending}
        return state

    def _apply_mutation(self, state: QueryState, action: Any, request_action: Optional[Any]) -> QueryState:
        origin = request_action or action
        if self.is_request_read_only(origin):
            return state

        updater = ((origin.meta or {}).get('mutations') or {}).get(self.key)
        if updater is None:
            return state

        if request_action is None:
            local = updater.get('local') if isinstance(updater, dict) else None
            return {**state, 'data': local(state['data'])} if local else state

        if action.type == success(origin.type):
            update = updater.get('success') if isinstance(updater, dict) else updater
            return {**state, 'data': update(state['data'], action.payload.get('data'))} if update else state

        if action.type in (error(origin.type), abort(origin.type)):
            revert = updater.get('revert') if isinstance(updater, dict) else None
            return {**state, 'data': revert(state['data'])} if revert else state

        return state

    def _reset(self, state: QueryState, action: Any) -> QueryState:
        requests = (action.payload or {}).get('requests')
        if requests is not None and self.key not in get_keys(requests):
            return state
        return {**self.initial_state(), 'pending': state['pending']}
