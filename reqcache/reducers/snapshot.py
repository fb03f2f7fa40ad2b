"""Serialization of request state for prerendered snapshots."""

from typing import Any, Dict, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field

from reqcache.reducers.selectors import get_network_state


class QuerySnapshot(BaseModel):
    model_config = ConfigDict(extra='forbid')

    data: Any = None
    error: Any = None
    pending: int = Field(default=0, ge=0)


class MutationSnapshot(BaseModel):
    model_config = ConfigDict(extra='allow')

    error: Any = None
    pending: int = Field(default=0, ge=0)


class NetworkSnapshot(BaseModel):
    queries: Dict[str, QuerySnapshot] = Field(default_factory=dict)
    mutations: Dict[str, MutationSnapshot] = Field(default_factory=dict)


def _encode_unknown(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {'type': type(value).__name__, 'message': str(value)}
    return str(value)


def dump_snapshot(state: Any) -> bytes:
    """Serialize request state to JSON bytes; in-flight counters are dropped."""
    network_state = get_network_state(state)
    snapshot = {
        'queries': {key: {**query, 'pending': 0} for key, query in network_state['queries'].items()},
        'mutations': {key: {**mutation, 'pending': 0} for key, mutation in network_state['mutations'].items()},
    }
    return orjson.dumps(snapshot, default=_encode_unknown)


def load_snapshot(raw: Union[bytes, str]) -> Dict[str, Dict[str, Any]]:
    """Parse and validate a snapshot into the state layout the network reducer consumes."""
    snapshot = NetworkSnapshot.model_validate(orjson.loads(raw))
    return {
        'queries': {key: query.model_dump() for key, query in snapshot.queries.items()},
        'mutations': {key: mutation.model_dump() for key, mutation in snapshot.mutations.items()},
    }
