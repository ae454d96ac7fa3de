"""
Drink API Client: request shape and error mapping
"""

import json

import pytest
import requests

from conftest import StubResponse, StubSession, drinks_payload
from mineral.core.scan_authenticator import Identity
from mineral.errors import MalformedResponseError, StatusError, TransportError
from mineral.utils.drink_client import DrinkClient


def make_client(*responses):
    session = StubSession(*responses)
    return DrinkClient('https://drink.example.test/', 's3cret', timeout=3.0, session=session), session


def test_fetch_catalog_sends_secret():
    client, session = make_client(StubResponse(payload=drinks_payload()))

    snapshot = client.fetch_catalog()

    method, url, kwargs = session.calls[0]
    assert method == 'GET'
    assert url == 'https://drink.example.test/drinks'
    assert kwargs['headers'] == {'X-Auth-Token': 's3cret'}
    assert kwargs['timeout'] == 3.0
    assert [m.id for m in snapshot.machines] == [1, 2, 9]


def test_fetch_catalog_status_error():
    client, _ = make_client(StubResponse(status_code=500, reason='Internal Server Error'))

    with pytest.raises(StatusError) as excinfo:
        client.fetch_catalog()

    assert excinfo.value.status_code == 500
    assert excinfo.value.status == '500 Internal Server Error'


def test_fetch_catalog_transport_error():
    client, _ = make_client(requests.ConnectionError('connection refused'))

    with pytest.raises(TransportError, match='connection refused'):
        client.fetch_catalog()


@pytest.mark.parametrize('response', [
    StubResponse(json_error=ValueError('Expecting value')),
    StubResponse(payload={'machines': 'nope', 'message': ''}),
])
def test_fetch_catalog_malformed_body(response):
    client, _ = make_client(response)

    with pytest.raises(MalformedResponseError):
        client.fetch_catalog()


def test_drop_sends_user_info_and_slot():
    client, session = make_client(StubResponse())

    client.drop('bigdrink', 3, Identity('alice'))

    method, url, kwargs = session.calls[0]
    assert method == 'POST'
    assert url == 'https://drink.example.test/drinks/drop'
    assert kwargs['headers']['X-Auth-Token'] == 's3cret'
    assert json.loads(kwargs['headers']['X-User-Info']) == {'preferred_username': 'alice'}
    assert kwargs['json'] == {'machine': 'bigdrink', 'slot': 3}


@pytest.mark.parametrize('status', [201, 400, 403, 500])
def test_drop_only_accepts_200(status):
    client, _ = make_client(StubResponse(status_code=status, reason='Nope'))

    with pytest.raises(StatusError) as excinfo:
        client.drop('bigdrink', 3, Identity('alice'))

    assert excinfo.value.status_code == status


def test_drop_timeout_is_transport_error():
    client, _ = make_client(requests.Timeout('read timed out'))

    with pytest.raises(TransportError):
        client.drop('bigdrink', 3, Identity('alice'))


def test_from_config_uses_endpoint_secret_and_timeout(config):
    client = DrinkClient.from_config(config, session=StubSession())

    assert client.endpoint == 'https://drink.example.test'
    assert client.timeout == config.request_timeout

    client.close()
    assert client.session.closed
