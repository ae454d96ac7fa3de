"""
Kiosk exceptions

Transient failures (catalog fetch, association lookup) are absorbed by the
actors; order-fatal ones (drop, reader) end the order as FAILED.
"""


class DrinkApiError(Exception):
    """Base class for drink backend failures"""


class TransportError(DrinkApiError):
    """The request never produced an HTTP response (connection, timeout, ...)"""


class StatusError(DrinkApiError):
    """The backend answered with a non-success status"""

    def __init__(self, status_code: int, reason: str = ''):
        self.status_code = status_code
        self.reason = reason or ''
        super().__init__(self.status)

    @property
    def status(self) -> str:
        """Status line text, e.g. ``500 Internal Server Error``"""
        return f"{self.status_code} {self.reason}".strip()


class MalformedResponseError(DrinkApiError):
    """The backend answered 200 with a body that could not be parsed"""


class ReaderError(Exception):
    """Tag reader could not be opened or used"""


class ReaderBusyError(ReaderError):
    """Tag reader is already checked out by another order"""


class AuthenticationError(Exception):
    """Association could not be resolved to an identity (recoverable)"""
