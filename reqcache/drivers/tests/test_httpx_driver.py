import httpx
import orjson
import pytest

from reqcache.actions import Action
from reqcache.drivers.httpx_driver import HttpxDriver, map_httpx_exception
from reqcache.exceptions import (
    AuthenticationError,
    HttpStatusError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
)

ACTION = Action(type='FETCH_BOOKS', payload={'request': {'url': '/books'}})


def make_driver(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url='https://api.example.com')
    return HttpxDriver(base_url='https://api.example.com', client=client)


class TestHttpxDriver:
    @pytest.mark.asyncio
    async def test_json_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['method'] = request.method
            seen['url'] = str(request.url)
            seen['header'] = request.headers.get('x-trace')
            return httpx.Response(200, json={'books': [1, 2]})

        driver = make_driver(handler)

        response = await driver.execute({'url': '/books', 'params': {'page': 2}, 'headers': {'x-trace': 'abc'}}, ACTION)

        assert response['data'] == {'books': [1, 2]}
        assert response['status'] == 200
        assert seen == {'method': 'GET', 'url': 'https://api.example.com/books?page=2', 'header': 'abc'}
        await driver.close()

    @pytest.mark.asyncio
    async def test_json_body_and_method(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['method'] = request.method
            seen['body'] = orjson.loads(request.content)
            return httpx.Response(201, json={'id': 7})

        driver = make_driver(handler)

        response = await driver.execute({'url': '/books', 'method': 'post', 'json': {'title': 'Dune'}}, ACTION)

        assert seen == {'method': 'POST', 'body': {'title': 'Dune'}}
        assert response['data'] == {'id': 7}
        assert response['status'] == 201

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'response,expected',
        [
            (httpx.Response(200, text='plain'), 'plain'),
            (httpx.Response(204), None),
        ],
    )
    async def test_non_json_bodies(self, response, expected):
        driver = make_driver(lambda request: response)

        assert (await driver.execute({'url': '/books'}, ACTION))['data'] == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'status_code,error_class',
        [
            (400, HttpStatusError),
            (401, AuthenticationError),
            (403, AuthenticationError),
            (404, NotFoundError),
            (429, RateLimitError),
            (503, ServerError),
        ],
    )
    async def test_error_status_is_mapped(self, status_code, error_class):
        driver = make_driver(lambda request: httpx.Response(status_code, text='nope'))

        with pytest.raises(error_class) as exc_info:
            await driver.execute({'url': '/books'}, ACTION)

        assert type(exc_info.value) is error_class
        assert exc_info.value.status_code == status_code
        assert exc_info.value.response_body == 'nope'

    @pytest.mark.asyncio
    async def test_transport_failure_is_mapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        driver = make_driver(handler)

        with pytest.raises(TransportError) as exc_info:
            await driver.execute({'url': '/books'}, ACTION)

        assert 'connection refused' in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestMapHttpxException:
    def test_keeps_explicit_correlation_id(self):
        request = httpx.Request('GET', 'https://api.example.com/books')
        exc = httpx.HTTPStatusError('bad', request=request, response=httpx.Response(500, request=request))

        error = map_httpx_exception(exc, correlation_id='abc')

        assert isinstance(error, ServerError)
        assert error.correlation_id == 'abc'
