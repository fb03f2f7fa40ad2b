"""Normalized cache reducer over ``{'queries': {...}, 'mutations': {...}}``."""

from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from reqcache.actions import get_dedup_key, get_request_action_from_response, is_response_action
from reqcache.config.log import get_logger
from reqcache.config.models import RequestsConfig
from reqcache.constants import RESET_REQUESTS
from reqcache.reducers.mutation import MutationReducer
from reqcache.reducers.query import QueryReducer

logger = get_logger(__name__)

NetworkState = Dict[str, Dict[str, Any]]

QUERY_REDUCER_OPTIONS = ('multiple', 'get_default_data')


def initial_network_state() -> NetworkState:
    return {'queries': {}, 'mutations': {}}


class QueryReducerRegistry:
    """Query sub-reducers by query key.

    A sub-reducer is created the first time its key is seen and is only ever
    replaced (snapshot adoption), never removed.
    """

    def __init__(self):
        self._reducers: Dict[str, QueryReducer] = {}

    def register(self, key: str, reducer: QueryReducer) -> None:
        self._reducers[key] = reducer

    def get(self, key: str) -> Optional[QueryReducer]:
        return self._reducers.get(key)

    def keys(self) -> List[str]:
        return list(self._reducers.keys())

    def items(self) -> Iterator[Tuple[str, QueryReducer]]:
        return iter(list(self._reducers.items()))

    def __contains__(self, key: str) -> bool:
        return key in self._reducers

    def __len__(self) -> int:
        return len(self._reducers)


class NetworkReducer:
    """Pure reduction of request lifecycle actions into query and mutation slices.

    Query sub-reducers are materialized lazily on the first query request action of
    a key. When the first state seen already holds queries (a prerendered snapshot),
    placeholder sub-reducers keep those slices alive until a live request action of
    the same key adopts them.
    """

    def __init__(self, config: Optional[RequestsConfig] = None):
        self.config = config or RequestsConfig()
        self.registry = QueryReducerRegistry()
        self.mutation_reducer = MutationReducer(self.config.handle_operations_state)
        self.initialized_from_snapshot = False
        self._pending_adoption: Set[str] = set()

    @property
    def pending_adoption(self) -> Set[str]:
        return set(self._pending_adoption)

    def __call__(self, state: Optional[NetworkState], action: Any) -> NetworkState:
        if state is None:
            state = initial_network_state()
        queries = state.get('queries') or {}
        mutations = state.get('mutations') or {}

        if not self.initialized_from_snapshot and queries and len(self.registry) == 0:
            self._bootstrap(queries)

        is_request = self.config.is_request_action(action)
        is_query_request = is_request and self.config.is_request_read_only(action)

        if is_query_request:
            key = get_dedup_key(action)
            if key not in self.registry or key in self._pending_adoption:
                self._materialize(key, action)

        next_queries: Dict[str, Any] = {}
        changed = set(queries) != set(self.registry.keys())
        for key, reducer in self.registry.items():
            previous = queries.get(key)
            next_queries[key] = reducer(previous, action)
            if next_queries[key] is not previous:
                changed = True

        next_mutations = mutations
        if (is_request and not is_query_request) or (
            is_response_action(action) and not self.config.is_request_read_only(get_request_action_from_response(action))
        ):
            next_mutations = self.mutation_reducer(mutations, action)
        elif action.type == RESET_REQUESTS:
            next_mutations = self.mutation_reducer.reset(mutations, action)

        if not changed and next_mutations is mutations and 'queries' in state and 'mutations' in state:
            return state

        return {'queries': next_queries if changed else queries, 'mutations': next_mutations}

    def _bootstrap(self, queries: Dict[str, Any]) -> None:
        self.initialized_from_snapshot = True
        self._pending_adoption = set(queries)
        for key in queries:
            self.registry.register(key, self._build_reducer(key, {}))
        logger.info('Query state rehydrated from snapshot', keys=sorted(queries))

    def _materialize(self, key: str, action: Any) -> None:
        meta = action.meta or {}
        options = {option: meta[option] for option in QUERY_REDUCER_OPTIONS if option in meta}
        self.registry.register(key, self._build_reducer(key, options))
        adopted = key in self._pending_adoption
        self._pending_adoption.discard(key)
        logger.debug('Query reducer materialized', key=key, adopted=adopted)

    def _build_reducer(self, key: str, options: Dict[str, Any]) -> QueryReducer:
        settings = {
            'multiple': self.config.multiple,
            'get_default_data': self.config.get_default_data,
            **options,
        }
        return QueryReducer(key, self.config.is_request_read_only, **settings)
