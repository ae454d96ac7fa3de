"""
Event Consumer: the single owner of presentation state

Runs on the presentation thread. Drains catalog snapshots and order states
from their channels, applies them to a Presenter, and turns the
presenter's user intents (order, cancel) into workflow actions.
"""

import itertools
import logging
import queue
import threading
from typing import Callable, Dict, List, Optional

from .catalog import CatalogSnapshot, MachineView, build_machine_views
from .order_state import CancelHandle, OrderIntent, OrderState, OrderStateKind


class Presenter:
    """
    Display collaborator driven by the EventConsumer

    Subclass and override what the UI needs; the defaults do nothing.
    All methods are called on the consumer's thread.
    """

    def show_machines(self, views: List[MachineView]):
        """Replace the item lists (one view per allow-listed machine)"""

    def show_scan_prompt(self):
        """Show the 'please scan your tag' panel with its cancel button"""

    def show_order_message(self, kind: OrderStateKind, message: str):
        """Show a vending/dropped/failed message on the order panel"""

    def show_menu(self):
        """Leave the order panel and return to the item lists"""


class EventConsumer:
    """
    Single-threaded sink for catalog and order events

    Features:
    - Catalog snapshots replace machine views wholesale
    - Order states applied strictly in arrival order
    - At most one order in progress
    - FINISHED(refresh=True) expedites the next catalog fetch
    """

    def __init__(self, config, presenter: Presenter,
                 catalog_channel: queue.Queue, ordering_channel: queue.Queue,
                 refresh_channel: queue.Queue,
                 workflow_factory: Callable[[int, OrderIntent], object]):
        """
        Initialize Event Consumer

        Args:
            config: KioskConfig (allow-list and online filter)
            presenter: Display collaborator
            catalog_channel: Snapshots from the Menu Poller
            ordering_channel: Order states from the workflows
            refresh_channel: Refresh requests to the Menu Poller
            workflow_factory: Builds an unstarted workflow for (order_id, intent)
        """
        self.logger = logging.getLogger(__name__)
        self.config = config
        self.presenter = presenter
        self.catalog_channel = catalog_channel
        self.ordering_channel = ordering_channel
        self.refresh_channel = refresh_channel
        self.workflow_factory = workflow_factory

        self.machine_views: Dict[int, MachineView] = {
            machine_id: MachineView.unknown(machine_id)
            for machine_id in config.displayable_machines
        }
        self.active_order: Optional[int] = None
        self._cancel: Optional[CancelHandle] = None
        self._order_ids = itertools.count(1)

    @property
    def order_in_progress(self) -> bool:
        return self.active_order is not None

    def views(self) -> List[MachineView]:
        return [self.machine_views[machine_id] for machine_id in self.config.displayable_machines]

    def pump(self) -> int:
        """
        Apply every event currently waiting on the channels

        Returns:
            Number of events applied
        """
        handled = 0

        while True:
            try:
                state = self.ordering_channel.get_nowait()
            except queue.Empty:
                break
            self.on_order_state(state)
            handled += 1

        while True:
            try:
                snapshot = self.catalog_channel.get_nowait()
            except queue.Empty:
                break
            self.on_catalog(snapshot)
            handled += 1

        return handled

    def run(self, stop_event: threading.Event, interval: float = 0.05):
        """Pump events until stop_event is set"""
        while not stop_event.is_set():
            self.pump()
            stop_event.wait(interval)

    def on_catalog(self, snapshot: CatalogSnapshot):
        if snapshot.message:
            self.logger.debug("Catalog message: %s", snapshot.message)

        views = build_machine_views(snapshot, self.config.displayable_machines,
                                    require_online=self.config.require_online,
                                    previous=self.machine_views)
        self.machine_views = {view.machine_id: view for view in views}
        self.presenter.show_machines(views)

    def on_order_state(self, state: OrderState):
        if state.order_id != self.active_order:
            self.logger.warning("Ignoring %r: order %s is active", state, self.active_order)
            if state.is_terminal and state.refresh:
                self.refresh_channel.put(None)
            return

        if state.kind is OrderStateKind.PLEASE_SCAN:
            self._cancel = state.cancel
            self.presenter.show_scan_prompt()
        elif state.kind is OrderStateKind.FINISHED:
            self.active_order = None
            self._cancel = None
            self.presenter.show_menu()
            if state.refresh:
                self.refresh_channel.put(None)
        else:
            # Past the scan, the order can no longer be cancelled
            self._cancel = None
            self.presenter.show_order_message(state.kind, state.message)

    def request_order(self, intent: OrderIntent) -> bool:
        """
        Start an order for an item the user picked

        Returns:
            False if another order is still in progress
        """
        if self.order_in_progress:
            self.logger.warning("Order %d in progress, ignoring %s", self.active_order,
                                intent.item_name)
            return False

        order_id = next(self._order_ids)
        self.active_order = order_id
        try:
            self.workflow_factory(order_id, intent).start()
        except Exception:
            self.logger.exception("Could not start order %d", order_id)
            self.active_order = None
            raise
        return True

    def request_cancel(self) -> bool:
        """
        Cancel the order waiting for a scan

        Returns:
            False if there is no cancellable order
        """
        if self._cancel is None:
            return False

        self.logger.info("Cancelling order %d", self.active_order)
        self._cancel.cancel()
        return True
