"""Reducer of mutation status slices."""

from typing import Any, Callable, Dict, Optional

from reqcache.actions import abort, error, get_dedup_key, get_keys, get_request_action_from_response, is_response_action, success

MutationState = Dict[str, Any]


def derive_mutation_key(action: Any) -> str:
    """Key of a mutation: ``meta['operations']['get_request_key'](request_action)`` or the dedup key."""
    request_action = get_request_action_from_response(action) if is_response_action(action) else action
    operations = (action.meta or {}).get('operations') or {}
    get_request_key: Optional[Callable[[Any], str]] = operations.get('get_request_key')
    if get_request_key is not None:
        return get_request_key(request_action)
    return get_dedup_key(request_action)


class MutationReducer:
    """Tracks ``{'error', 'pending'}`` per mutation key, plus the last ``data`` when ``handle_operations_state``."""

    def __init__(self, handle_operations_state: bool = False):
        self.handle_operations_state = handle_operations_state

    def initial_state(self) -> MutationState:
        state = {'error': None, 'pending': 0}
        if self.handle_operations_state:
            state['data'] = None
        return state

    def __call__(self, mutations: Dict[str, MutationState], action: Any) -> Dict[str, MutationState]:
        key = derive_mutation_key(action)
        previous = mutations.get(key) or self.initial_state()

        if not is_response_action(action):
            return {**mutations, key: {**previous, 'error': None, 'pending': previous['pending'] + 1}}

        request_type = get_request_action_from_response(action).type
        pending = max(0, previous['pending'] - 1)

        if action.type == success(request_type):
            updated = {**previous, 'error': None, 'pending': pending}
            if self.handle_operations_state:
                updated['data'] = action.payload.get('data')
        elif action.type == error(request_type):
            updated = {**previous, 'error': action.payload.get('error'), 'pending': pending}
        elif action.type == abort(request_type):
            updated = {**previous, 'pending': pending}
        else:
            return mutations

        return {**mutations, key: updated}

    def reset(self, mutations: Dict[str, MutationState], action: Any) -> Dict[str, MutationState]:
        """Clear error and data of the matching (or all) mutation keys, keeping pending counters."""
        requests = (action.payload or {}).get('requests')
        keys = set(mutations) if requests is None else set(get_keys(requests)) & set(mutations)
        if not keys:
            return mutations

        return {key: ({**self.initial_state(), 'pending': value['pending']} if key in keys else value) for key, value in mutations.items()}
