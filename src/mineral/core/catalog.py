"""
Catalog Model: machines, slots and items served by the drink backend

A CatalogSnapshot is the result of one fetch and always replaces the
previous one; nothing here is merged across snapshots.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .order_state import OrderIntent


class CatalogParseError(ValueError):
    """Raised when a catalog payload does not have the expected shape"""


@dataclass(frozen=True)
class Item:
    """Product stocked in a slot"""
    id: int
    name: str
    price: int  # Credits


@dataclass(frozen=True)
class Slot:
    """Machine slot holding one item"""
    number: int
    machine: int
    item: Item
    active: bool
    empty: bool
    count: Optional[int] = None

    @property
    def dispensable(self) -> bool:
        """True if the slot may be shown and ordered"""
        return self.active and not self.empty and (self.count is None or self.count > 0)


@dataclass(frozen=True)
class Machine:
    """Vending machine and its slots, in backend order"""
    id: int
    name: str
    display_name: str
    is_online: bool
    slots: Tuple[Slot, ...] = ()

    def dispensable_slots(self) -> List[Slot]:
        return [slot for slot in self.slots if slot.dispensable]


@dataclass(frozen=True)
class CatalogSnapshot:
    """Parsed ``GET /drinks`` response envelope"""
    machines: Tuple[Machine, ...]
    message: str = ''

    @classmethod
    def from_json(cls, payload) -> 'CatalogSnapshot':
        """
        Parse the drinks response body

        Args:
            payload: Decoded JSON ``{"machines": [...], "message": str}``

        Returns:
            CatalogSnapshot

        Raises:
            CatalogParseError: If a required field is missing or mistyped
        """
        if not isinstance(payload, dict):
            raise CatalogParseError("Catalog response must be an object")

        machines = _require(payload, 'machines', list)
        message = _require(payload, 'message', str)
        return cls(machines=tuple(_parse_machine(m) for m in machines), message=message)

    def machine(self, machine_id: int) -> Optional[Machine]:
        for machine in self.machines:
            if machine.id == machine_id:
                return machine
        return None


@dataclass(frozen=True)
class MachineView:
    """Display state of one allow-listed machine"""
    machine_id: int
    label: str
    items: Tuple[OrderIntent, ...] = ()

    @property
    def revealed(self) -> bool:
        """Machines are only shown while they have something to order"""
        return len(self.items) > 0

    @classmethod
    def unknown(cls, machine_id: int) -> 'MachineView':
        return cls(machine_id=machine_id, label=f"Unknown Machine {machine_id}")


def build_machine_views(snapshot: CatalogSnapshot, displayable_machines: Iterable[int],
                        require_online: bool = False,
                        previous: Optional[Dict[int, MachineView]] = None) -> List[MachineView]:
    """
    Derive display state for the allow-listed machines

    Dispensable slots are re-derived from the snapshot alone. A machine
    missing from the snapshot is hidden; it keeps only its last known label.

    Args:
        snapshot: Latest catalog snapshot
        displayable_machines: Machine id allow-list, in display order
        require_online: Hide machines reporting ``is_online == False``
        previous: Views from the last snapshot, keyed by machine id

    Returns:
        One MachineView per allow-listed machine, in allow-list order
    """
    previous = previous or {}
    views = []

    for machine_id in displayable_machines:
        machine = snapshot.machine(machine_id)
        if machine is None:
            label = previous[machine_id].label if machine_id in previous \
                else MachineView.unknown(machine_id).label
            views.append(MachineView(machine_id=machine_id, label=label))
            continue

        if require_online and not machine.is_online:
            items = ()
        else:
            items = tuple(OrderIntent.from_slot(machine.name, slot)
                          for slot in machine.dispensable_slots())

        views.append(MachineView(machine_id=machine_id, label=machine.display_name, items=items))

    return views


def _parse_machine(data) -> Machine:
    if not isinstance(data, dict):
        raise CatalogParseError("Machine entry must be an object")

    machine_id = _require(data, 'id', int)
    slots = tuple(_parse_slot(s) for s in _require(data, 'slots', list))
    return Machine(
        id=machine_id,
        name=_require(data, 'name', str),
        display_name=_require(data, 'display_name', str),
        is_online=_require(data, 'is_online', bool),
        slots=slots,
    )


def _parse_slot(data) -> Slot:
    if not isinstance(data, dict):
        raise CatalogParseError("Slot entry must be an object")

    count = data.get('count')
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise CatalogParseError(f"Invalid slot count: {count!r}")

    item = _require(data, 'item', dict)
    return Slot(
        number=_require(data, 'number', int),
        machine=_require(data, 'machine', int),
        item=Item(
            id=_require(item, 'id', int),
            name=_require(item, 'name', str),
            price=_require(item, 'price', int),
        ),
        active=_require(data, 'active', bool),
        empty=_require(data, 'empty', bool),
        count=count,
    )


def _require(data: dict, key: str, kind: type):
    if key not in data:
        raise CatalogParseError(f"Missing field: {key}")

    value = data[key]
    # bool is an int subclass; keep integer fields strict
    if kind is int and isinstance(value, bool):
        raise CatalogParseError(f"Field {key} must be int, got bool")
    if not isinstance(value, kind):
        raise CatalogParseError(f"Field {key} must be {kind.__name__}, got {type(value).__name__}")
    return value
