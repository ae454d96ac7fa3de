"""
Shared stubs: HTTP session, reader sessions, drink client and presenter
"""

import queue
import threading

import pytest

from mineral.core.event_consumer import Presenter
from mineral.core.scan_authenticator import Identity
from mineral.errors import AuthenticationError, ReaderError
from mineral.utils.config import KioskConfig


def drinks_payload():
    return {
        'message': 'Successfully retrieved machine contents',
        'machines': [
            {
                'id': 1,
                'name': 'bigdrink',
                'display_name': 'Big Drink',
                'is_online': True,
                'slots': [
                    {'number': 1, 'machine': 1, 'active': True, 'empty': False, 'count': None,
                     'item': {'id': 10, 'name': 'Cola', 'price': 50}},
                    {'number': 2, 'machine': 1, 'active': True, 'empty': True, 'count': None,
                     'item': {'id': 11, 'name': 'Root Beer', 'price': 50}},
                    {'number': 3, 'machine': 1, 'active': True, 'empty': False, 'count': 0,
                     'item': {'id': 12, 'name': 'Ginger Ale', 'price': 40}},
                ],
            },
            {
                'id': 2,
                'name': 'snack',
                'display_name': 'Snack',
                'is_online': False,
                'slots': [
                    {'number': 5, 'machine': 2, 'active': True, 'empty': False, 'count': 3,
                     'item': {'id': 20, 'name': 'Chips', 'price': 25}},
                ],
            },
            {
                'id': 9,
                'name': 'hidden',
                'display_name': 'Not Allow-listed',
                'is_online': True,
                'slots': [],
            },
        ],
    }


class StubResponse:
    def __init__(self, status_code=200, payload=None, reason='OK', json_error=None):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class StubSession:
    """Records requests and replays scripted responses (or raises them)"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._next('POST', url, **kwargs)

    def close(self):
        self.closed = True


class FakeScanSession:
    """
    Scripted reader session

    ``tags`` is consumed one entry per poll (None = no tag). ``users`` maps
    association -> Identity, or an exception to raise from fetch_user.
    """

    def __init__(self, tags=(), users=None, poll_error=None):
        self.tags = list(tags)
        self.users = users or {}
        self.poll_error = poll_error
        self.polls = 0
        self.fetched = []
        self.closed = False

    def poll_for_user(self):
        self.polls += 1
        if self.poll_error is not None:
            raise self.poll_error
        if self.tags:
            return self.tags.pop(0)
        return None

    def fetch_user(self, association):
        self.fetched.append(association)
        result = self.users.get(association)
        if result is None:
            raise AuthenticationError(f"unknown association {association}")
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FakeAuthenticator:
    def __init__(self, session=None, open_error=None):
        self.session = session
        self.open_error = open_error
        self.opened = 0

    def open_session(self):
        self.opened += 1
        if self.open_error is not None:
            raise self.open_error
        return self.session


class RecordingDrinkClient:
    """Drink client double: records drops, optionally raising"""

    def __init__(self, drop_error=None, catalog=None, catalog_error=None):
        self.drop_error = drop_error
        self.catalog = catalog
        self.catalog_error = catalog_error
        self.drops = []
        self.fetches = 0

    def drop(self, machine, slot, identity):
        self.drops.append((machine, slot, identity))
        if self.drop_error is not None:
            raise self.drop_error

    def fetch_catalog(self):
        self.fetches += 1
        if self.catalog_error is not None:
            raise self.catalog_error
        return self.catalog


class RecordingPresenter(Presenter):
    def __init__(self):
        self.calls = []

    def show_machines(self, views):
        self.calls.append(('machines', views))

    def show_scan_prompt(self):
        self.calls.append(('scan', None))

    def show_order_message(self, kind, message):
        self.calls.append((kind.value, message))

    def show_menu(self):
        self.calls.append(('menu', None))


def drain(channel: queue.Queue):
    items = []
    while True:
        try:
            items.append(channel.get_nowait())
        except queue.Empty:
            return items


def collect_until_finished(channel: queue.Queue, timeout: float = 5.0):
    """Read order states until FINISHED (fails the test on timeout)"""
    states = []
    while True:
        state = channel.get(timeout=timeout)
        states.append(state)
        if state.is_terminal:
            return states


@pytest.fixture
def config():
    return KioskConfig(
        machine_secret='s3cret',
        displayable_machines=[1, 2],
        endpoint='https://drink.example.test',
        device='serial:/dev/ttyACM0',
        poll_interval=60.0,
        cancel_poll_interval=0.01,
        result_hold=0.0,
    )


@pytest.fixture
def alice():
    return Identity(uid='alice', record={'user': {'uid': 'alice'}})


@pytest.fixture
def reader_error():
    return ReaderError("Could not open reader serial:/dev/ttyACM0:9600: no such device")


@pytest.fixture
def stop_event():
    event = threading.Event()
    yield event
    event.set()
