"""
Order Workflow: one background actor per order

State Flow:
1. PLEASE_SCAN: wait for a tag, resolve it to a member (cancellable)
2. VENDING: ask the backend to drop the item
3. DROPPED / FAILED: show the outcome for a while
4. FINISHED(refresh): back to the menu; refresh if a drop was attempted
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from ..errors import AuthenticationError, DrinkApiError, ReaderError, StatusError
from .order_state import CancelSignal, OrderIntent, OrderState, OrderStateKind
from .scan_authenticator import Identity


class OrderWorkflow:
    """
    Scan → authenticate → vend → report, for a single order

    Every transition is published on the ordering channel. Exactly one
    FINISHED is published per workflow and nothing follows it. The drop
    request is sent at most once, and only if no cancellation was seen.
    """

    def __init__(self, order_id: int, intent: OrderIntent, client, authenticator,
                 ordering_channel: queue.Queue,
                 cancel_poll_interval: float = 0.25,
                 result_hold: float = 5.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize Order Workflow

        Args:
            order_id: Identifies this order's events
            intent: What to drop, captured at selection time
            client: DrinkClient (anything with drop())
            authenticator: ScanAuthenticator (anything with open_session())
            ordering_channel: Order states are published here
            cancel_poll_interval: Max wait for a cancel between reader polls (seconds)
            result_hold: How long DROPPED/FAILED stay on screen (seconds)
            sleep: Blocking sleep used for the result hold
        """
        self.logger = logging.getLogger(__name__)
        self.order_id = order_id
        self.intent = intent
        self.client = client
        self.authenticator = authenticator
        self.ordering_channel = ordering_channel
        self.cancel_poll_interval = cancel_poll_interval
        self.result_hold = result_hold
        self.sleep = sleep

        self.reached_vending = False
        self.outcome_shown = False
        self.drop_attempts = 0
        self.finished = False
        self.thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, config, order_id: int, intent: OrderIntent, client,
                    authenticator, ordering_channel: queue.Queue) -> 'OrderWorkflow':
        return cls(order_id, intent, client, authenticator, ordering_channel,
                   cancel_poll_interval=config.cancel_poll_interval,
                   result_hold=config.result_hold)

    def start(self) -> threading.Thread:
        """Run the workflow on its own daemon thread"""
        self.thread = threading.Thread(target=self.run, name=f'order-{self.order_id}', daemon=True)
        self.thread.start()
        return self.thread

    def run(self):
        """Run the whole order; returns after FINISHED has been published"""
        cancel = CancelSignal()
        self._emit(OrderState.please_scan(self.order_id, cancel.handle()))
        self.logger.info("Starting order %d: %s (%s slot %d)", self.order_id,
                         self.intent.item_name, self.intent.machine, self.intent.slot)

        try:
            refresh = self._run(cancel)
        except Exception as e:
            self.logger.exception("Order %d aborted", self.order_id)
            if not self.outcome_shown:
                self._emit(OrderState.failed(self.order_id, f"Something went wrong: {e}"))
            refresh = self.reached_vending

        # The reader is checked back in by now
        self._finish(refresh)

    def _run(self, cancel: CancelSignal) -> bool:
        """
        Scan, authenticate and vend; the session is closed on return

        Returns:
            Whether FINISHED should refresh the catalog
        """
        try:
            session = self.authenticator.open_session()
        except ReaderError as e:
            self.logger.error("Order %d: tag reader unavailable: %s", self.order_id, e)
            self._fail(f"Tag reader unavailable: {e}")
            return False

        with session:
            try:
                identity = self._scan(session, cancel)
            except ReaderError as e:
                self.logger.error("Order %d: tag reader failed: %s", self.order_id, e)
                self._fail(f"Tag reader error: {e}")
                return False

            if identity is None:
                self.logger.info("Order %d cancelled", self.order_id)
                return False

            self.logger.info("Order %d: scanned %s", self.order_id, identity.uid)
            return self._vend(identity)

    def _scan(self, session, cancel: CancelSignal) -> Optional[Identity]:
        """
        Poll the reader until a tag resolves to a member

        Returns:
            Identity, or None if the order was cancelled first
        """
        while True:
            association = session.poll_for_user()
            if association is None:
                if cancel.wait(self.cancel_poll_interval):
                    return None
                continue

            try:
                identity = session.fetch_user(association)
            except AuthenticationError as e:
                self.logger.warning("Couldn't fetch user for association %s: %s", association, e)
                if cancel.wait(self.cancel_poll_interval):
                    return None
                continue

            # A cancel that raced the lookup still wins
            if cancel.requested():
                return None
            return identity

    def _vend(self, identity: Identity) -> bool:
        intent = self.intent
        self.reached_vending = True
        self._emit(OrderState.vending(self.order_id, f"Dropping {intent.item_name}..."))

        if self.drop_attempts:
            raise RuntimeError(f"Order {self.order_id} already sent a drop request")
        self.drop_attempts += 1

        try:
            self.client.drop(intent.machine, intent.slot, identity)
        except StatusError as e:
            self.logger.warning("Order %d: drop of slot %d from %s rejected: %s",
                                self.order_id, intent.slot, intent.machine, e.status)
            result = OrderState.failed(
                self.order_id,
                f"Error: Got a {e.status} response from the server. Try again later")
        except DrinkApiError as e:
            self.logger.error("Failed to drop slot %d from %s: %s",
                              intent.slot, intent.machine, e)
            result = OrderState.failed(self.order_id, f"Failed to drop: {e}")
        else:
            self.logger.info("Order %d: dropped %s", self.order_id, intent.item_name)
            result = OrderState.dropped(
                self.order_id,
                f"Dropped {intent.item_name} for {intent.item_cost} credits. Enjoy!")

        self._emit(result)
        self._hold()
        # Any attempted drop may have changed stock
        return True

    def _fail(self, message: str):
        self._emit(OrderState.failed(self.order_id, message))
        self._hold()

    def _hold(self):
        """Let the user read the outcome; not cancellable"""
        self.logger.debug("Order %d: holding result for %.1fs", self.order_id, self.result_hold)
        if self.result_hold > 0:
            self.sleep(self.result_hold)

    def _finish(self, refresh: bool):
        self._emit(OrderState.finished(self.order_id, refresh))
        self.logger.info("Order %d finished (refresh=%s)", self.order_id, refresh)

    def _emit(self, state: OrderState):
        if self.finished:
            self.logger.error("Order %d: ignoring %r after FINISHED", self.order_id, state)
            return

        if state.kind in (OrderStateKind.DROPPED, OrderStateKind.FAILED):
            self.outcome_shown = True
        elif state.is_terminal:
            self.finished = True
        self.ordering_channel.put(state)
