"""
Catalog Model: parsing, dispensable rule and machine views
"""

import pytest

from conftest import drinks_payload
from mineral.core.catalog import (
    CatalogParseError, CatalogSnapshot, Item, MachineView, Slot, build_machine_views,
)
from mineral.core.order_state import OrderIntent


def make_slot(active=True, empty=False, count=None):
    return Slot(number=1, machine=1, item=Item(1, 'Cola', 50),
                active=active, empty=empty, count=count)


@pytest.mark.parametrize('active, empty, count, expected', [
    (True, False, None, True),
    (True, False, 1, True),
    (True, False, 0, False),
    (True, False, -1, False),
    (True, True, None, False),
    (True, True, 5, False),
    (False, False, None, False),
    (False, False, 5, False),
])
def test_dispensable_rule(active, empty, count, expected):
    assert make_slot(active, empty, count).dispensable is expected


def test_parse_drinks_response():
    snapshot = CatalogSnapshot.from_json(drinks_payload())

    assert snapshot.message == 'Successfully retrieved machine contents'
    assert [m.id for m in snapshot.machines] == [1, 2, 9]

    big = snapshot.machine(1)
    assert big.name == 'bigdrink'
    assert big.display_name == 'Big Drink'
    assert big.is_online is True
    assert big.slots[0].item == Item(id=10, name='Cola', price=50)
    assert big.slots[0].count is None
    assert big.slots[2].count == 0
    assert [slot.number for slot in big.dispensable_slots()] == [1]


def test_unknown_machine_lookup_returns_none():
    assert CatalogSnapshot.from_json(drinks_payload()).machine(42) is None


@pytest.mark.parametrize('mutate', [
    lambda p: p.pop('machines'),
    lambda p: p.pop('message'),
    lambda p: p['machines'][0].pop('display_name'),
    lambda p: p['machines'][0]['slots'][0].pop('item'),
    lambda p: p['machines'][0]['slots'][0]['item'].update(price='50'),
    lambda p: p['machines'][0]['slots'][0].update(count=True),
    lambda p: p['machines'][0].update(id=True),
])
def test_malformed_payload_is_rejected(mutate):
    payload = drinks_payload()
    mutate(payload)

    with pytest.raises(CatalogParseError):
        CatalogSnapshot.from_json(payload)


def test_non_object_payload_is_rejected():
    with pytest.raises(CatalogParseError):
        CatalogSnapshot.from_json(['machines'])


def test_views_follow_allow_list_and_dispensable_slots():
    snapshot = CatalogSnapshot.from_json(drinks_payload())

    views = build_machine_views(snapshot, [2, 1])

    assert [v.machine_id for v in views] == [2, 1]
    snack, big = views
    assert snack.label == 'Snack'
    assert snack.items == (OrderIntent(machine='snack', slot=5, item_name='Chips', item_cost=25),)
    assert big.items == (OrderIntent(machine='bigdrink', slot=1, item_name='Cola', item_cost=50),)
    assert big.revealed and snack.revealed


def test_require_online_hides_offline_machines():
    snapshot = CatalogSnapshot.from_json(drinks_payload())

    views = build_machine_views(snapshot, [1, 2], require_online=True)

    assert views[0].revealed
    assert views[1].label == 'Snack'
    assert views[1].items == ()
    assert not views[1].revealed


def test_machine_missing_from_snapshot_is_hidden_but_keeps_label():
    previous = {3: MachineView(3, 'Little Drink', items=(OrderIntent('little', 1, 'Tea', 30),))}
    snapshot = CatalogSnapshot.from_json(drinks_payload())

    views = build_machine_views(snapshot, [3, 4], previous=previous)

    assert views[0] == MachineView(3, 'Little Drink')
    assert views[1] == MachineView.unknown(4)
    assert views[1].label == 'Unknown Machine 4'
    assert not any(v.revealed for v in views)


def test_new_snapshot_replaces_previous_items():
    first = CatalogSnapshot.from_json(drinks_payload())
    previous = {v.machine_id: v for v in build_machine_views(first, [1])}

    payload = drinks_payload()
    payload['machines'][0]['slots'][0]['empty'] = True
    views = build_machine_views(CatalogSnapshot.from_json(payload), [1], previous=previous)

    assert views[0].items == ()
    assert not views[0].revealed


def test_intent_cost_label():
    assert OrderIntent('bigdrink', 1, 'Cola', 50).cost_label == '50cr'
