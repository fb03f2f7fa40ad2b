from dataclasses import dataclass
from typing import Any, Optional

from reqcache.config.models import RequestsConfig
from reqcache.orchestrator.orchestrator import RequestOrchestrator
from reqcache.reducers.network import NetworkReducer


@dataclass
class RequestsHandlers:
    """The reducer and the middleware to install into a store."""

    reducer: NetworkReducer
    middleware: RequestOrchestrator


def handle_requests(config: Optional[RequestsConfig] = None, **options: Any) -> RequestsHandlers:
    """Build a network reducer and a request orchestrator sharing one configuration."""
    if config is None:
        config = RequestsConfig(**options)
    elif options:
        config = config.model_copy(update=options)

    return RequestsHandlers(reducer=NetworkReducer(config), middleware=RequestOrchestrator(config))
