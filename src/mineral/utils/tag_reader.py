"""
Proximity Tag Reader Driver

Line-oriented serial reader: every tag presentation is reported as one line
carrying the tag's association token.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import serial

from ..errors import ReaderError

CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F]")

# Longest unterminated line kept between polls
MAX_LINE_BYTES = 256

# driver -> default baudrate
SUPPORTED_DRIVERS = {
    'serial': 9600,
    'pn532_uart': 115200,
}


@dataclass(frozen=True)
class ConnectionString:
    """Parsed ``<driver>:<port>[:<baudrate>]`` device connection string"""
    driver: str
    port: str
    baudrate: int

    @classmethod
    def parse(cls, value: str) -> 'ConnectionString':
        """
        Parse a device connection string

        Args:
            value: e.g. 'pn532_uart:/dev/ttyUSB0' or 'serial:/dev/ttyACM0:9600'

        Returns:
            ConnectionString

        Raises:
            ReaderError: Unknown driver or malformed string
        """
        driver, sep, rest = (value or '').partition(':')
        if not sep or not rest:
            raise ReaderError(f"Invalid device connection string: {value!r}")
        if driver not in SUPPORTED_DRIVERS:
            raise ReaderError(f"Unsupported reader driver: {driver!r}")

        port, sep, baud = rest.rpartition(':')
        if sep and baud.isdigit():
            return cls(driver, port, int(baud))
        return cls(driver, rest, SUPPORTED_DRIVERS[driver])

    def __str__(self):
        return f"{self.driver}:{self.port}:{self.baudrate}"


class TagReader:
    """
    Serial proximity tag reader

    Features:
    - 8N1 serial link, short read timeout so polling never blocks long
    - Lines split across polls are reassembled before decoding
    - Control characters stripped from tag tokens
    - Usable as a context manager
    """

    def __init__(self, connection: ConnectionString, read_timeout: float = 0.1):
        """
        Initialize Tag Reader

        Args:
            connection: Parsed device connection string
            read_timeout: Max time a single poll may block (seconds)
        """
        self.logger = logging.getLogger(__name__)
        self.connection = connection
        self.read_timeout = read_timeout
        self.serial = None
        self._pending = b''

    def open(self):
        """
        Open the serial port

        Raises:
            ReaderError: Port could not be opened
        """
        try:
            self.serial = serial.Serial(
                port=self.connection.port,
                baudrate=self.connection.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout,
                write_timeout=1.0,
            )
        except (serial.SerialException, ValueError) as e:
            raise ReaderError(f"Could not open reader {self.connection}: {e}") from e

        self.serial.reset_input_buffer()
        self._pending = b''
        self.logger.info("Tag reader opened on %s @ %d baud",
                         self.connection.port, self.connection.baudrate)

    def read_tag(self) -> Optional[str]:
        """
        Read one tag presentation if available

        A read that times out mid-line is buffered; the token is returned by
        the poll that sees its newline.

        Returns:
            Association token, or None if no complete tag line arrived

        Raises:
            ReaderError: Reader is not open or the link failed
        """
        if self.serial is None:
            raise ReaderError("Reader is not open")

        try:
            raw = self.serial.readline()
        except serial.SerialException as e:
            raise ReaderError(f"Reader read failed: {e}") from e

        if not raw:
            return None

        self._pending += raw
        if not self._pending.endswith(b'\n'):
            if len(self._pending) > MAX_LINE_BYTES:
                self.logger.warning("Discarding %d bytes without a line end", len(self._pending))
                self._pending = b''
            return None

        line, self._pending = self._pending, b''
        text = line.decode('utf-8', errors='replace')
        text = CONTROL_CHARS_RE.sub('', text).strip()
        return text or None

    def close(self):
        if self.serial is not None:
            self.serial.close()
            self.serial = None
            self._pending = b''
            self.logger.info("Tag reader on %s closed", self.connection.port)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
