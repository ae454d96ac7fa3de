"""
Drink API Client

Outbound calls to the drink backend: catalog fetch and dispense (drop).
Every request is authenticated with the machine's shared secret.
"""

import json
import logging
from typing import Optional

import requests

from ..core.catalog import CatalogParseError, CatalogSnapshot
from ..errors import DrinkApiError, MalformedResponseError, StatusError, TransportError

__all__ = ['DrinkClient', 'DrinkApiError', 'MalformedResponseError', 'StatusError',
           'TransportError']


class DrinkClient:
    """
    HTTP client for the drink backend

    Features:
    - One shared requests.Session (thread-safe for these calls)
    - X-Auth-Token on every request
    - X-User-Info identifying the user on drops
    - Transport and status failures raised as distinct exceptions
    """

    AUTH_HEADER = 'X-Auth-Token'
    USER_HEADER = 'X-User-Info'

    def __init__(self, endpoint: str, secret: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize Drink Client

        Args:
            endpoint: Backend base URL (e.g., 'https://drink.csh.rit.edu')
            secret: Machine shared secret
            timeout: Per-request timeout (seconds)
            session: Optional session to reuse
        """
        self.logger = logging.getLogger(__name__)
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._secret = secret

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'DrinkClient':
        return cls(config.endpoint, config.machine_secret,
                   timeout=config.request_timeout, session=session)

    def fetch_catalog(self) -> CatalogSnapshot:
        """
        Fetch the current drink catalog

        Returns:
            Parsed CatalogSnapshot

        Raises:
            TransportError: Request failed before a response arrived
            StatusError: Response status was not 200
            MalformedResponseError: Body was not a valid catalog
        """
        url = self.endpoint + '/drinks'
        try:
            response = self.session.get(url, headers=self._auth_headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if response.status_code != requests.codes.ok:
            raise StatusError(response.status_code, response.reason)

        try:
            return CatalogSnapshot.from_json(response.json())
        except (ValueError, CatalogParseError) as e:
            raise MalformedResponseError(f"Invalid catalog from {url}: {e}") from e

    def drop(self, machine: str, slot: int, identity) -> None:
        """
        Ask the backend to dispense a slot on behalf of a user

        Args:
            machine: Machine name
            slot: Slot number
            identity: Resolved user Identity (uses ``identity.uid``)

        Raises:
            TransportError: Request failed before a response arrived
            StatusError: Response status was not 200
        """
        url = self.endpoint + '/drinks/drop'
        headers = self._auth_headers()
        headers[self.USER_HEADER] = json.dumps({'preferred_username': identity.uid})

        self.logger.info("Dropping slot %d from %s for %s", slot, machine, identity.uid)
        try:
            response = self.session.post(url, headers=headers,
                                         json={'machine': machine, 'slot': slot},
                                         timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"POST {url} failed: {e}") from e

        if response.status_code != requests.codes.ok:
            raise StatusError(response.status_code, response.reason)

    def close(self):
        self.session.close()

    def _auth_headers(self) -> dict:
        return {self.AUTH_HEADER: self._secret}
