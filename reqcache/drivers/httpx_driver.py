"""Reference driver performing HTTP calls with httpx."""

from typing import Any, Dict, Optional

import httpx
import orjson

from reqcache.common.request_context import get_correlation_id
from reqcache.config.log import get_logger
from reqcache.drivers.interfaces import Driver
from reqcache.exceptions import (
    AuthenticationError,
    DriverError,
    HttpStatusError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
)

logger = get_logger(__name__)


def map_httpx_exception(exc: httpx.HTTPError, correlation_id: Optional[str] = None) -> DriverError:
    """Convert httpx exceptions to driver errors."""
    if not correlation_id:
        correlation_id = get_correlation_id()

    if isinstance(exc, httpx.HTTPStatusError):
        return _map_status_error(exc, correlation_id)
    elif isinstance(exc, httpx.RequestError):
        return TransportError(f'HTTP client error: {str(exc)}', correlation_id=correlation_id)
    else:
        return TransportError(f'Unknown HTTP error: {str(exc)}', correlation_id=correlation_id)


def _map_status_error(exc: httpx.HTTPStatusError, correlation_id: Optional[str] = None) -> HttpStatusError:
    status_code = exc.response.status_code
    response_text = exc.response.text
    error_message = f'HTTP {status_code}: {response_text}' if response_text else str(exc)

    match status_code:
        case 401 | 403:
            error_class = AuthenticationError
        case 404:
            error_class = NotFoundError
        case 429:
            error_class = RateLimitError
        case _ if status_code >= 500:
            error_class = ServerError
        case _:
            error_class = HttpStatusError
    return error_class(error_message, status_code=status_code, response_body=response_text, correlation_id=correlation_id)


class HttpxDriver(Driver):
    """Executes request descriptors such as ``{'url': '/books', 'method': 'get', 'params': {...}}``.

    Responses are returned as ``{'data', 'status', 'headers'}``. JSON bodies are decoded,
    anything else is returned as text.
    """

    def __init__(
        self,
        base_url: str = '',
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.http_client = client or httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(timeout), headers=headers)

    async def execute(self, request: Dict[str, Any], action: Any) -> Dict[str, Any]:
        method = (request.get('method') or 'get').upper()
        url = request.get('url', '')
        logger.debug('Sending request', method=method, url=url)

        try:
            response = await self.http_client.request(
                method,
                url,
                params=request.get('params'),
                json=request.get('json'),
                content=request.get('content'),
                headers=request.get('headers'),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise map_httpx_exception(e) from e

        return {'data': self._decode(response), 'status': response.status_code, 'headers': dict(response.headers)}

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        if 'json' in response.headers.get('content-type', ''):
            return orjson.loads(response.content)
        return response.text

    async def close(self):
        await self.http_client.aclose()

    def __str__(self) -> str:
        return f'HttpxDriver(base_url={self.base_url})'
