from .mutation import MutationReducer, derive_mutation_key
from .network import NetworkReducer, QueryReducerRegistry, initial_network_state
from .query import QueryReducer
from .selectors import get_mutation, get_query
from .snapshot import dump_snapshot, load_snapshot

__all__ = [
    'MutationReducer',
    'NetworkReducer',
    'QueryReducer',
    'QueryReducerRegistry',
    'derive_mutation_key',
    'dump_snapshot',
    'get_mutation',
    'get_query',
    'initial_network_state',
    'load_snapshot',
]
