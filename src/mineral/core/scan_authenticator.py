"""
Scan Authenticator: tag presentation → association → member identity

A ScanSession owns the reader for one order. Sessions are checked out
from the ScanAuthenticator, which hands out at most one per device.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..errors import AuthenticationError, ReaderBusyError, ReaderError
from ..utils.member_client import MemberClient, MemberLookupError
from ..utils.tag_reader import ConnectionString, TagReader


@dataclass(frozen=True)
class Identity:
    """Resolved member"""
    uid: str
    record: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, record: dict) -> 'Identity':
        """
        Extract the identity from a member record

        Args:
            record: Member record ``{"user": {"uid": ...}, ...}``

        Raises:
            AuthenticationError: Record has no usable uid
        """
        user = record.get('user') if isinstance(record, dict) else None
        uid = user.get('uid') if isinstance(user, dict) else None
        if not isinstance(uid, str) or not uid:
            raise AuthenticationError("Member record has no uid")
        return cls(uid=uid, record=record)


class ScanSession:
    """
    Reader + member lookup for a single order

    Released exactly once, either by close() or by leaving the ``with`` block.
    """

    def __init__(self, reader, members: MemberClient, release: Callable[[], None]):
        self.logger = logging.getLogger(__name__)
        self.reader = reader
        self.members = members
        self._release = release
        self._closed = False

    def poll_for_user(self) -> Optional[str]:
        """
        Check once for a tag presentation

        Returns:
            Association token, or None when no tag is present

        Raises:
            ReaderError: The reader failed
        """
        return self.reader.read_tag()

    def fetch_user(self, association: str) -> Identity:
        """
        Resolve an association to an identity

        Raises:
            AuthenticationError: Lookup failed; the caller should keep scanning
        """
        try:
            record = self.members.fetch_member(association)
        except MemberLookupError as e:
            raise AuthenticationError(str(e)) from e
        return Identity.from_record(record)

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.reader.close()
        finally:
            self._release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ScanAuthenticator:
    """
    Opens exclusive scan sessions on one tag reader

    A second open_session() while a session is live raises ReaderBusyError
    instead of opening the device twice.
    """

    def __init__(self, device: str, members: MemberClient,
                 reader_factory: Callable[[ConnectionString], object] = TagReader):
        """
        Initialize Scan Authenticator

        Args:
            device: Reader connection string (e.g., 'pn532_uart:/dev/ttyUSB0')
            members: Member backend client for the kiosk's realm
            reader_factory: Builds an unopened reader for a connection
        """
        self.logger = logging.getLogger(__name__)
        self.device = device
        self.members = members
        self.reader_factory = reader_factory

        self._lock = threading.Lock()
        self._checked_out = False

    @classmethod
    def from_config(cls, config, members: Optional[MemberClient] = None) -> 'ScanAuthenticator':
        return cls(config.device, members or MemberClient.from_config(config))

    @property
    def in_use(self) -> bool:
        with self._lock:
            return self._checked_out

    def open_session(self) -> ScanSession:
        """
        Check out the reader and open it

        Returns:
            ScanSession (use as a context manager)

        Raises:
            ReaderBusyError: Another order holds the reader
            ReaderError: Connection string invalid or device unavailable
        """
        connection = ConnectionString.parse(self.device)

        with self._lock:
            if self._checked_out:
                raise ReaderBusyError(f"Reader {self.device} is in use by another order")
            self._checked_out = True

        try:
            reader = self.reader_factory(connection)
            reader.open()
        except ReaderError:
            self._checkin()
            raise
        except Exception as e:
            self._checkin()
            raise ReaderError(f"Could not open reader {self.device}: {e}") from e

        self.logger.debug("Reader %s checked out", self.device)
        return ScanSession(reader, self.members, self._checkin)

    def _checkin(self):
        with self._lock:
            self._checked_out = False
        self.logger.debug("Reader %s checked in", self.device)
