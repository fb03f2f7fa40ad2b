"""Context of the request action currently being orchestrated."""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass
class RequestContext:
    """Identity of one orchestrated request action, carried into its log events."""

    correlation_id: str = field(default_factory=_new_correlation_id)
    action_type: Optional[str] = None
    request_key: Optional[str] = None
    driver_name: Optional[str] = None
    batch_size: Optional[int] = None

    def log_fields(self) -> Dict[str, Any]:
        """Fields that are set, for binding into structured log events."""
        return {name: value for name, value in asdict(self).items() if value}


_current_context: ContextVar[Optional[RequestContext]] = ContextVar('reqcache_request_context', default=None)


def get_request_context() -> Optional[RequestContext]:
    return _current_context.get()


def set_request_context(context: RequestContext) -> None:
    _current_context.set(context)


def get_correlation_id() -> Optional[str]:
    context = _current_context.get()
    return context.correlation_id if context else None
