import json
from decimal import Decimal

import httpx
import pytest

from pos.core.api_client import ApiClient, ApiError

def make_client(handler):
    return ApiClient('http://pos.test/', transport=httpx.MockTransport(handler))

def test_offline_client_raises():
    client = ApiClient('')

    assert not client.enabled
    assert not client.check_health()
    with pytest.raises(ApiError):
        client.get_products()

def test_create_product_sends_json_body():
    seen = {}

    def handler(request):
        seen['method'] = request.method
        seen['url'] = str(request.url)
        seen['body'] = json.loads(request.content)
        return httpx.Response(201, json={'id': 12})

    result = make_client(handler).create_product({'name_es': 'Bao', 'price': Decimal('3.20')})

    assert result == {'id': 12}
    assert seen['method'] == 'POST'
    assert seen['url'] == 'http://pos.test/api/products'
    assert seen['body'] == {'name_es': 'Bao', 'price': '3.20'}

def test_error_body_message_is_used():
    client = make_client(lambda request: httpx.Response(400, json={'error': 'Precio inválido'}))

    with pytest.raises(ApiError) as exc_info:
        client.update_product(5, {'price': -1})
    assert str(exc_info.value) == 'Precio inválido'
    assert exc_info.value.status_code == 400

def test_error_without_body():
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(ApiError, match='HTTP error! status: 500'):
        client.get_drink_options()

def test_transport_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(ApiError):
        make_client(handler).delete_product(3)

def test_empty_response_returns_none():
    assert make_client(lambda request: httpx.Response(204)).delete_product(3) is None

def test_health_check():
    def handler(request):
        assert request.url.path == '/api/health'
        return httpx.Response(200, json={'status': 'ok'})

    assert make_client(handler).check_health()
    assert not make_client(lambda request: httpx.Response(503)).check_health()

def test_non_list_products_become_empty():
    assert make_client(lambda request: httpx.Response(200, json={'items': []})).get_products() == []
