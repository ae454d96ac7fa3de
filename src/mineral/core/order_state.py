"""
Order State: values that cross from an order workflow to the consumer

States: PLEASE_SCAN → VENDING → DROPPED | FAILED → FINISHED
        PLEASE_SCAN → FINISHED (cancelled)
"""

import queue
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderStateKind(Enum):
    """Order workflow states published to the consumer"""
    PLEASE_SCAN = "please_scan"
    VENDING = "vending"
    DROPPED = "dropped"
    FAILED = "failed"
    FINISHED = "finished"


@dataclass(frozen=True)
class OrderIntent:
    """What is being ordered, captured when the item is selected"""
    machine: str  # Machine name, as expected by the drop endpoint
    slot: int
    item_name: str
    item_cost: int

    @classmethod
    def from_slot(cls, machine_name: str, slot) -> 'OrderIntent':
        return cls(machine=machine_name, slot=slot.number,
                   item_name=slot.item.name, item_cost=slot.item.price)

    @property
    def cost_label(self) -> str:
        return f"{self.item_cost}cr"


class CancelHandle:
    """
    Sending side of one order's cancellation channel

    Handed to the consumer with PLEASE_SCAN. Sending is always safe, even
    after the order has moved past the point where it can be cancelled.
    """

    def __init__(self, channel: 'queue.Queue[None]'):
        self._channel = channel

    def cancel(self):
        self._channel.put(None)


class CancelSignal:
    """Receiving side of one order's cancellation channel"""

    def __init__(self):
        self._channel = queue.Queue()

    def handle(self) -> CancelHandle:
        return CancelHandle(self._channel)

    def wait(self, timeout: float) -> bool:
        """
        Wait for a cancellation request

        Args:
            timeout: Maximum time to block (seconds)

        Returns:
            True if cancellation was requested
        """
        try:
            self._channel.get(timeout=timeout)
        except queue.Empty:
            return False
        return True

    def requested(self) -> bool:
        """Non-blocking check for a pending cancellation request"""
        try:
            self._channel.get_nowait()
        except queue.Empty:
            return False
        return True


@dataclass(frozen=True)
class OrderState:
    """
    One order state transition

    Only the payload relevant to ``kind`` is set: ``cancel`` for
    PLEASE_SCAN, ``message`` for VENDING/DROPPED/FAILED and ``refresh``
    for FINISHED.
    """
    kind: OrderStateKind
    order_id: int
    message: Optional[str] = None
    refresh: bool = False
    cancel: Optional[CancelHandle] = None

    @classmethod
    def please_scan(cls, order_id: int, cancel: CancelHandle) -> 'OrderState':
        return cls(OrderStateKind.PLEASE_SCAN, order_id, cancel=cancel)

    @classmethod
    def vending(cls, order_id: int, message: str) -> 'OrderState':
        return cls(OrderStateKind.VENDING, order_id, message=message)

    @classmethod
    def dropped(cls, order_id: int, message: str) -> 'OrderState':
        return cls(OrderStateKind.DROPPED, order_id, message=message)

    @classmethod
    def failed(cls, order_id: int, message: str) -> 'OrderState':
        return cls(OrderStateKind.FAILED, order_id, message=message)

    @classmethod
    def finished(cls, order_id: int, refresh: bool) -> 'OrderState':
        return cls(OrderStateKind.FINISHED, order_id, refresh=refresh)

    @property
    def is_terminal(self) -> bool:
        return self.kind is OrderStateKind.FINISHED

    def __repr__(self):
        if self.kind is OrderStateKind.FINISHED:
            return f"OrderState({self.kind.value}, order={self.order_id}, refresh={self.refresh})"
        if self.message is not None:
            return f"OrderState({self.kind.value}, order={self.order_id}, {self.message!r})"
        return f"OrderState({self.kind.value}, order={self.order_id})"
