"""Read helpers over the normalized request state."""

from typing import Any, Dict, Optional

from reqcache.reducers.network import initial_network_state


def get_network_state(state: Any) -> Dict[str, Any]:
    """Accept either the network state itself or a host state holding it under ``requests``."""
    if not state:
        return initial_network_state()
    if 'queries' in state:
        return state
    return state.get('requests') or initial_network_state()


def get_query(state: Any, type: str, request_key: Optional[str] = None, multiple: bool = False, default_data: Any = None) -> Dict[str, Any]:
    """Return ``{'data', 'error', 'loading'}`` of a query, with default data for unknown keys."""
    query = get_network_state(state)['queries'].get(type + (request_key or ''))
    if query is None:
        if default_data is None:
            default_data = [] if multiple else None
        return {'data': default_data, 'error': None, 'loading': False}

    return {'data': query['data'], 'error': query['error'], 'loading': query['pending'] > 0}


def get_mutation(state: Any, type: str, request_key: Optional[str] = None) -> Dict[str, Any]:
    """Return ``{'error', 'loading'}`` of a mutation key."""
    mutation = get_network_state(state)['mutations'].get(type + (request_key or ''))
    if mutation is None:
        return {'error': None, 'loading': False}

    result = {'error': mutation['error'], 'loading': mutation['pending'] > 0}
    if 'data' in mutation:
        result['data'] = mutation['data']
    return result
