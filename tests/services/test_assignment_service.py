from decimal import Decimal

import pytest

from billsplit.models.bill import Item, ItemShare, Person
from billsplit.services.assignment_service import (
    AssignmentState, assign_all_to_all, build_shares_from_people_items, bulk_assign,
)
from billsplit.services.totals_service import compute_totals

ITEMS = [
    Item(id="1", label="Pizza", price=Decimal("20.00")),
    Item(id="2", label="Beer", price=Decimal("8.00")),
    Item(id="3", label="Salad", price=Decimal("12.00")),
]
PEOPLE = [Person(id="p1", name="Alice"), Person(id="p2", name="Bob")]


def test_assign_returns_new_state():
    empty = AssignmentState()
    state = empty.assign("1", "p1")
    assert len(empty) == 0
    assert empty.shares() == []
    assert state.shares() == [ItemShare(item_id="1", person_id="p1", weight=Decimal("1"))]


def test_assign_replaces_weight():
    state = AssignmentState().assign("1", "p1", 1).assign("1", "p1", 3)
    assert state.weights_for("1") == {"p1": Decimal("3")}


def test_toggle_on_and_off():
    state = AssignmentState().toggle("1", "p1")
    assert state.is_assigned("1", "p1")
    state = state.toggle("1", "p1")
    assert not state.is_assigned("1", "p1")
    assert state.item_ids() == []


def test_unassign_unknown_pair_is_a_no_op():
    state = AssignmentState().assign("1", "p1")
    assert state.unassign("1", "p2") is state


def test_split_evenly_ignores_duplicates():
    state = AssignmentState().assign("1", "p3", 5).split_evenly("1", ["p1", "p2", "p1"])
    assert state.weights_for("1") == {"p1": Decimal("1"), "p2": Decimal("1")}


def test_remove_person_cascades():
    state = (
        AssignmentState()
        .assign("1", "p1")
        .assign("1", "p2")
        .assign("2", "p2")
    )
    state = state.remove_person("p2")
    assert state.shares() == [ItemShare(item_id="1", person_id="p1", weight=Decimal("1"))]
    assert state.item_ids() == ["1"]


def test_remove_item():
    state = AssignmentState().assign("1", "p1").assign("2", "p1").remove_item("1")
    assert state.item_ids() == ["2"]


def test_equal_states_hash_equal():
    first = AssignmentState().assign("1", "p1").assign("2", "p2", 2)
    second = AssignmentState.from_shares(first.shares())
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, AssignmentState()}) == 2


def test_from_shares_last_write_wins():
    state = AssignmentState.from_shares([
        ItemShare(item_id="1", person_id="p1", weight=Decimal("1")),
        ItemShare(item_id="1", person_id="p1", weight=Decimal("2")),
        ItemShare(item_id="1", person_id="p2", weight=Decimal("1")),
    ])
    assert state.weights_for("1") == {"p1": Decimal("2"), "p2": Decimal("1")}
    assert len(state) == 2


def test_bulk_assign():
    state = AssignmentState().assign("3", "p1")
    state = bulk_assign(state, [
        {"item_id": "1", "person_ids": ["p1", "p2"]},
        {"item_id": "2", "weights": {"p1": 2, "p2": 1}},
        {"item_id": "3", "person_ids": []},
    ])
    assert state.weights_for("1") == {"p1": Decimal("1"), "p2": Decimal("1")}
    assert state.weights_for("2") == {"p1": Decimal("2"), "p2": Decimal("1")}
    assert state.weights_for("3") == {}


def test_assign_all_to_all():
    state = assign_all_to_all(ITEMS, PEOPLE)
    assert len(state) == len(ITEMS) * len(PEOPLE)
    result = compute_totals(ITEMS, state.shares(), PEOPLE)
    assert [p.total for p in result.person_totals] == [Decimal("20.00"), Decimal("20.00")]


@pytest.mark.parametrize("items, people", [([], PEOPLE), (ITEMS, [])])
def test_assign_all_to_all_with_nothing_to_assign(items, people):
    assert assign_all_to_all(items, people).shares() == []


def test_state_snapshot_feeds_the_engine():
    state = AssignmentState().assign("1", "p1", 3).assign("1", "p2", 1).assign("2", "p2")
    snapshot = state.shares()
    result = compute_totals(ITEMS, snapshot, PEOPLE, tax=Decimal("2.80"))
    alice, bob = result.person_totals
    assert alice.subtotal == Decimal("15.00")
    assert bob.subtotal == Decimal("13.00")
    # later edits do not touch the snapshot
    state.remove_person("p1")
    assert len(snapshot) == 3


class TestBuildSharesFromPeopleItems:
    items = [Item(id="1", label="A", price=Decimal("20")), Item(id="2", label="B", price=Decimal("8")),
             Item(id="3", label="C", price=Decimal("12"))]

    def test_one_item_each(self):
        people = [{"id": "p1", "items": ["1"]}, {"id": "p2", "items": ["2"]}, {"id": "p3", "items": ["3"]}]
        shares = build_shares_from_people_items(self.items, people)
        assert shares == [
            ItemShare(item_id="1", person_id="p1", weight=Decimal("1")),
            ItemShare(item_id="2", person_id="p2", weight=Decimal("1")),
            ItemShare(item_id="3", person_id="p3", weight=Decimal("1")),
        ]

    def test_shared_item_is_split(self):
        people = [{"id": "p1", "items": ["1"]}, {"id": "p2", "items": ["1"]}]
        shares = build_shares_from_people_items(self.items, people)
        assert [s.weight for s in shares] == [Decimal("0.5"), Decimal("0.5")]

    def test_three_way_split(self):
        people = [{"id": f"p{i}", "items": ["1"]} for i in range(3)]
        shares = build_shares_from_people_items(self.items, people)
        assert len(shares) == 3
        for s in shares:
            assert abs(s.weight - Decimal(1) / 3) < Decimal("1e-9")

    def test_mixed_single_and_shared(self):
        people = [{"id": "p1", "items": ["1", "2"]}, {"id": "p2", "items": ["1", "3"]}]
        shares = build_shares_from_people_items(self.items, people)
        assert len(shares) == 4
        assert [s.weight for s in shares if s.item_id == "1"] == [Decimal("0.5"), Decimal("0.5")]
        assert next(s for s in shares if s.item_id == "2").weight == 1
        assert next(s for s in shares if s.item_id == "3").weight == 1

    def test_no_people_or_no_items(self):
        assert build_shares_from_people_items(self.items, []) == []
        assert build_shares_from_people_items(self.items, [{"id": "p1", "items": []}, {"id": "p2", "items": None}]) == []

    def test_object_item_references(self):
        people = [{"id": "p1", "items": [{"id": "1"}, {"id": "2"}]}, {"id": "p2", "items": [{"id": "3"}]}]
        shares = build_shares_from_people_items(self.items, people)
        assert [(s.item_id, s.person_id) for s in shares] == [("1", "p1"), ("2", "p1"), ("3", "p2")]

    def test_unknown_and_repeated_items(self):
        people = [{"id": "p1", "items": ["1", "1", "99"]}, {"id": "p2", "items": ["1"]}]
        shares = build_shares_from_people_items(self.items, people)
        assert [(s.item_id, s.person_id, s.weight) for s in shares] == [
            ("1", "p1", Decimal("0.5")), ("1", "p2", Decimal("0.5")),
        ]
