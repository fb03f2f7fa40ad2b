"""Request orchestration middleware and normalized request state reducer."""

from reqcache.actions import Action, abort, abort_requests, error, reset_requests, success
from reqcache.config.models import RequestsConfig
from reqcache.constants import ABORT_REQUESTS, REQUEST_ABORTED, RESET_REQUESTS
from reqcache.drivers.interfaces import Driver
from reqcache.exceptions import RequestAbortedError, RequestFailedError, RequestResultError
from reqcache.factory import RequestsHandlers, handle_requests
from reqcache.orchestrator.orchestrator import RequestOrchestrator
from reqcache.reducers.network import NetworkReducer
from reqcache.reducers.selectors import get_mutation, get_query

__all__ = [
    'ABORT_REQUESTS',
    'RESET_REQUESTS',
    'REQUEST_ABORTED',
    'Action',
    'Driver',
    'NetworkReducer',
    'RequestAbortedError',
    'RequestFailedError',
    'RequestOrchestrator',
    'RequestResultError',
    'RequestsConfig',
    'RequestsHandlers',
    'abort',
    'abort_requests',
    'error',
    'get_mutation',
    'get_query',
    'handle_requests',
    'reset_requests',
    'success',
]
