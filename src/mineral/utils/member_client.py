"""
Member Backend Client

Resolves a tag association to the member record it belongs to.
"""

import logging
from typing import Optional
from urllib.parse import quote

import requests


class MemberLookupError(Exception):
    """Association could not be resolved to a member record"""


class MemberClient:
    """HTTP lookup of member records by association, scoped to one realm"""

    AUTH_HEADER = 'X-Auth-Token'

    def __init__(self, endpoint: str, realm: str = 'drink', token: Optional[str] = None,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Initialize Member Client

        Args:
            endpoint: Member backend base URL
            realm: Realm the kiosk authenticates for
            token: Optional backend token
            timeout: Per-request timeout (seconds)
            session: Optional session to reuse
        """
        self.logger = logging.getLogger(__name__)
        self.endpoint = endpoint.rstrip('/')
        self.realm = realm
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = token

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'MemberClient':
        members = config.members
        return cls(members.endpoint or config.endpoint, realm=members.realm,
                   token=members.token, timeout=config.request_timeout, session=session)

    def fetch_member(self, association: str) -> dict:
        """
        Fetch the member record for an association

        Args:
            association: Association token read from the tag

        Returns:
            Decoded member record

        Raises:
            MemberLookupError: Request failed, non-200 status or bad body
        """
        url = '{}/realms/{}/associations/{}'.format(
            self.endpoint, quote(self.realm, safe=''), quote(association, safe=''))
        headers = {self.AUTH_HEADER: self._token} if self._token else {}

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise MemberLookupError(f"Lookup of {association} failed: {e}") from e

        if response.status_code != requests.codes.ok:
            raise MemberLookupError(
                f"Lookup of {association} returned {response.status_code} {response.reason}")

        try:
            record = response.json()
        except ValueError as e:
            raise MemberLookupError(f"Invalid member record for {association}: {e}") from e

        if not isinstance(record, dict):
            raise MemberLookupError(f"Invalid member record for {association}")
        return record
