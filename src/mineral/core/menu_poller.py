"""
Menu Poller: keeps the consumer's catalog fresh

Fetches the catalog every poll interval, or right away when a refresh is
requested (e.g. after a drop changed the stock).
"""

import logging
import queue
import threading
from typing import Optional

from ..errors import DrinkApiError


class MenuPoller:
    """
    Background catalog refresher

    Features:
    - Fixed-interval polling on a daemon thread
    - Refresh channel cuts the wait short
    - Failed cycles are skipped, the next cycle tries again
    """

    def __init__(self, client, catalog_channel: queue.Queue,
                 refresh_channel: queue.Queue, interval: float = 60.0):
        """
        Initialize Menu Poller

        Args:
            client: DrinkClient (anything with fetch_catalog())
            catalog_channel: Snapshots are published here
            refresh_channel: Any item put here triggers an immediate fetch
            interval: Seconds between fetches when no refresh is requested
        """
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.catalog_channel = catalog_channel
        self.refresh_channel = refresh_channel
        self.interval = interval

        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self):
        """Start polling thread"""
        if self.running:
            self.logger.warning("Menu poller already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._poll_loop, name='menu-poller', daemon=True)
        self.thread.start()

        self.logger.info("Menu poller started (interval %.0fs)", self.interval)

    def run_once(self) -> bool:
        """
        Fetch and publish the catalog once

        Returns:
            True if a snapshot was published
        """
        self.logger.debug("Trying to get drink list...")
        try:
            snapshot = self.client.fetch_catalog()
        except DrinkApiError as e:
            self.logger.warning("Skipping catalog refresh: %s", e)
            return False

        self.logger.debug("Got updated drink list (%d machines)", len(snapshot.machines))
        self.catalog_channel.put(snapshot)
        return True

    def wait_for_refresh(self) -> bool:
        """
        Block until the interval passes or a refresh is requested

        Returns:
            True if a refresh request ended the wait
        """
        try:
            self.refresh_channel.get(timeout=self.interval)
        except queue.Empty:
            return False
        return True

    def _poll_loop(self):
        """Continuous polling loop"""
        while self.running:
            try:
                self.run_once()
            except Exception:
                self.logger.exception("Unexpected error while refreshing catalog")

            if self.wait_for_refresh() and self.running:
                self.logger.info("Expediting drink fetch because a drink was dropped")

    def stop(self, timeout: float = 2.0):
        """
        Stop polling thread

        The loop exits at its next wait; a refresh request is sent so that
        happens promptly.
        """
        self.running = False
        self.refresh_channel.put(None)

        if self.thread:
            self.thread.join(timeout=timeout)

        self.logger.info("Menu poller stopped")
