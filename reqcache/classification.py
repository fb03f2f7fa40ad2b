"""Query vs mutation classification of request actions."""

from typing import Any


def is_request_read_only(action: Any) -> bool:
    """Default predicate: is this request action a query?

    ``meta['as_query']`` forces a query. Otherwise a descriptor without ``query`` text
    is a query when it has no method or a GET method, and a descriptor with ``query``
    text is a query unless that text starts with ``mutation``. A batch carries neither
    ``query`` nor ``method`` itself, so it is always a query.
    """
    if (action.meta or {}).get('as_query'):
        return True

    request = (action.payload or {}).get('request')
    if isinstance(request, list):
        return True

    request = request or {}
    query = request.get('query')
    if not query:
        method = request.get('method')
        return not method or method.lower() == 'get'
    return not query.strip().startswith('mutation')
