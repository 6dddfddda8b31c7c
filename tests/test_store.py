"""Tests for bill transitions."""

import pytest
from pydantic import ValidationError

from billbreak.actions import AddItem, AddParticipant, AddParticipantWithColor, Assign, AssignAll, Reset
from billbreak.models import (
    INITIAL_STATE,
    AssignmentRecord,
    LineItem,
    Participant,
    ParticipantColor,
    assigned_quantity,
)
from billbreak.store import BillStore, apply_action
from helpers import add_item, item_by_id


class TestParticipants:
    """Tests for adding, updating and removing participants."""

    def test_colors_follow_palette_then_cycle(self, store):
        """Test that colours are handed out in palette order and cycle by count."""
        for name in ("A", "B", "C", "D", "E", "F"):
            store.add_participant(name)

        colors = [p.color for p in store.state.participants]
        assert colors == [
            ParticipantColor.EMERALD,
            ParticipantColor.BLUE,
            ParticipantColor.PURPLE,
            ParticipantColor.ROSE,
            ParticipantColor.EMERALD,
            ParticipantColor.BLUE,
        ]

    def test_freed_color_is_reused(self, store, four_people):
        """Test that removing a participant frees their colour for the next one."""
        store.remove_participant(four_people[1])
        store.add_participant("Eve")

        assert store.state.participants[-1].color == ParticipantColor.BLUE

    def test_ids_are_unique(self, store, four_people):
        """Test generated participant ids are distinct."""
        assert len(set(four_people)) == 4

    def test_add_with_color(self, store):
        """Test adding a participant with an explicit colour."""
        store.add_participant_with_color("Zed", ParticipantColor.ROSE)

        assert store.state.participants[0].color == ParticipantColor.ROSE

    def test_add_participant_with_taken_id_is_noop(self, store):
        """Test adding a second participant under an existing id leaves the state unchanged."""
        store.dispatch(AddParticipant(participant_id="p", name="Alice"))
        before = store.state

        store.dispatch(AddParticipant(participant_id="p", name="Bob"))
        store.dispatch(AddParticipantWithColor(participant_id="p", name="Carol", color=ParticipantColor.ROSE))

        assert store.state == before
        assert [p.name for p in store.state.participants] == ["Alice"]

    def test_remove_strips_only_their_assignments(self, store, four_people):
        """Test removing a participant cascades to exactly their records."""
        alice, bob = four_people[0], four_people[1]
        coke = add_item(store, "Coke", 60, 5)
        fries = add_item(store, "Fries", 100, 1)
        store.assign(coke, alice, 3)
        store.assign(coke, bob, 2)
        store.assign(fries, bob, 1)

        store.remove_participant(bob)

        state = store.state
        assert [p.id for p in state.participants] == [four_people[0], four_people[2], four_people[3]]
        assert item_by_id(state, coke).assignments == (AssignmentRecord(participant_id=alice, quantity=3),)
        assert item_by_id(state, fries).assignments == ()

    def test_remove_unknown_is_noop(self, store, four_people):
        """Test removing an unknown id leaves the state equal."""
        before = store.state
        store.remove_participant("nobody")

        assert store.state == before

    def test_update_participant(self, store, four_people):
        """Test explicit update changes name and colour only for that participant."""
        store.update_participant(four_people[0], name="Alicia", color=ParticipantColor.ROSE)

        first, second = store.state.participants[:2]
        assert first.name == "Alicia"
        assert first.color == ParticipantColor.ROSE
        assert second.name == "Bob"

    def test_set_participants_strips_missing(self, store, four_people):
        """Test replacing participants drops records of people no longer present."""
        item = add_item(store, "Nachos", 350)
        store.assign_all(item)
        keep = store.state.participants[:2]

        store.set_participants(keep)

        assert store.state.participants == keep
        remaining = {a.participant_id for a in item_by_id(store.state, item).assignments}
        assert remaining == {four_people[0], four_people[1]}


class TestItems:
    """Tests for item transitions."""

    def test_add_item_defaults(self, store):
        """Test a new item gets quantity 1 and no assignments."""
        store.add_item("Garlic Bread", 180)

        item = store.state.items[0]
        assert item.name == "Garlic Bread"
        assert item.unit_price == 180
        assert item.quantity == 1
        assert item.assignments == ()

    def test_remove_item_clears_selection(self, store):
        """Test removing the selected item clears the selection."""
        item = add_item(store, "Salmon", 650)
        other = add_item(store, "Pasta", 380)
        store.select_item(item)

        store.remove_item(item)

        assert store.state.selected_item_id is None
        assert [i.id for i in store.state.items] == [other]

    def test_remove_other_item_keeps_selection(self, store):
        """Test removing a different item keeps the selection."""
        item = add_item(store, "Salmon", 650)
        other = add_item(store, "Pasta", 380)
        store.select_item(item)

        store.remove_item(other)

        assert store.state.selected_item_id == item

    def test_update_item_keeps_assignments(self, store, four_people):
        """Test editing an item does not reconcile its assignments."""
        item = add_item(store, "Coke", 60, 5)
        store.assign(item, four_people[0], 5)

        store.update_item(item, quantity=2, name="Diet Coke")

        updated = item_by_id(store.state, item)
        assert updated.name == "Diet Coke"
        assert updated.quantity == 2
        assert updated.unit_price == 60
        assert assigned_quantity(updated) == 5

    def test_set_items_replaces_and_drops_stale_selection(self, store):
        """Test confirming parsed items replaces the list."""
        old = add_item(store, "Old", 1)
        store.select_item(old)
        new_items = [LineItem(name="Pizza", unit_price=500)]

        store.set_items(new_items)

        assert store.state.items == tuple(new_items)
        assert store.state.selected_item_id is None

    def test_add_item_with_taken_id_is_noop(self, store):
        """Test adding a second item under an existing id leaves the state unchanged."""
        store.dispatch(AddItem(item_id="x", name="Tea", unit_price=20))
        before = store.state

        store.dispatch(AddItem(item_id="x", name="Coffee", unit_price=30))

        assert store.state == before
        assert [i.name for i in store.state.items] == ["Tea"]

    def test_set_items_drops_unknown_participants(self, store, four_people):
        """Test loaded items keep only records for participants on the bill."""
        item = LineItem(
            name="Coke", unit_price=60, quantity=5,
            assignments=(
                AssignmentRecord(participant_id=four_people[0], quantity=2),
                AssignmentRecord(participant_id="ghost", quantity=3),
            ),
        )

        store.set_items([item])

        assert store.state.items[0].assignments == (AssignmentRecord(participant_id=four_people[0], quantity=2),)

    def test_invalid_numbers_rejected_by_models(self):
        """Test negative prices and zero quantities never reach the state."""
        with pytest.raises(ValidationError):
            LineItem(name="Bad", unit_price=-1)
        with pytest.raises(ValidationError):
            AddItem(name="Bad", unit_price=1, quantity=0)
        with pytest.raises(ValidationError):
            Assign(item_id="i", participant_id="p", quantity=-1)


class TestAssignment:
    """Tests for assign, unassign and toggle."""

    def test_assign_upserts_not_adds(self, store, four_people):
        """Test assigning twice replaces the quantity."""
        item = add_item(store, "Coke", 60, 5)
        store.assign(item, four_people[0], 3)
        store.assign(item, four_people[0], 1)

        assert item_by_id(store.state, item).assignments == (
            AssignmentRecord(participant_id=four_people[0], quantity=1),
        )

    def test_assign_zero_keeps_record(self, store, four_people):
        """Test quantity 0 leaves a present record with nothing claimed."""
        item = add_item(store, "Coke", 60, 5)
        store.assign(item, four_people[0], 0)

        records = item_by_id(store.state, item).assignments
        assert len(records) == 1
        assert records[0].quantity == 0

    def test_unassign_removes_record(self, store, four_people):
        """Test unassign removes the participant's record entirely."""
        item = add_item(store, "Coke", 60, 5)
        store.assign(item, four_people[0], 2)
        store.assign(item, four_people[1], 3)

        store.unassign(item, four_people[0])

        assert [a.participant_id for a in item_by_id(store.state, item).assignments] == [four_people[1]]

    def test_toggle_single_unit(self, store, four_people):
        """Test single-unit items toggle a claim of exactly 1 on and off."""
        item = add_item(store, "Pizza", 500)
        store.toggle(item, four_people[0])
        store.toggle(item, four_people[1])

        assert [a.quantity for a in item_by_id(store.state, item).assignments] == [1, 1]

        store.toggle(item, four_people[0])
        assert [a.participant_id for a in item_by_id(store.state, item).assignments] == [four_people[1]]

    def test_toggle_multi_unit_takes_remaining(self, store, four_people):
        """Test multi-unit items hand over the unclaimed remainder, minimum 1."""
        item = add_item(store, "Coke", 60, 5)
        store.assign(item, four_people[0], 3)

        store.toggle(item, four_people[1])
        assert item_by_id(store.state, item).assignments[-1].quantity == 2

        store.toggle(item, four_people[2])
        assert item_by_id(store.state, item).assignments[-1].quantity == 1

    def test_assigned_quantity_never_negative(self, store, four_people):
        """Test assignment operations keep assigned quantity non-negative."""
        item = add_item(store, "Beer", 450, 2)
        for participant in four_people:
            store.toggle(item, participant)
            assert assigned_quantity(item_by_id(store.state, item)) >= 0
            store.unassign(item, participant)
            assert assigned_quantity(item_by_id(store.state, item)) >= 0
            store.assign(item, participant, 0)
            assert assigned_quantity(item_by_id(store.state, item)) >= 0

    def test_unknown_item_is_noop(self, store, four_people):
        """Test operations on unknown item ids leave the state equal."""
        add_item(store, "Coke", 60, 5)
        before = store.state

        store.assign("missing", four_people[0], 1)
        store.toggle("missing", four_people[0])
        store.assign_all("missing")

        assert store.state == before


class TestAssignAll:
    """Tests for distributing an item across everyone."""

    def test_even_distribution_with_remainder(self, store, four_people):
        """Test 5 units among 4 people gives 2, 1, 1, 1."""
        item = add_item(store, "Coke", 60, 5)
        store.assign_all(item)

        records = item_by_id(store.state, item).assignments
        assert [a.participant_id for a in records] == four_people
        assert [a.quantity for a in records] == [2, 1, 1, 1]
        assert sum(a.quantity for a in records) == 5

    def test_exact_division(self, store, four_people):
        """Test 8 units among 4 people gives 2 each."""
        item = add_item(store, "Wings", 50, 8)
        store.assign_all(item)

        assert [a.quantity for a in item_by_id(store.state, item).assignments] == [2, 2, 2, 2]

    def test_shared_item_gives_one_each(self, store, four_people):
        """Test one pizza among four people gives each a claim of 1."""
        item = add_item(store, "Pizza", 500)
        store.assign_all(item)

        assert [a.quantity for a in item_by_id(store.state, item).assignments] == [1, 1, 1, 1]

    def test_replaces_existing_records(self, store, four_people):
        """Test assign-all overwrites earlier claims."""
        item = add_item(store, "Coke", 60, 4)
        store.assign(item, four_people[0], 4)
        store.assign_all(item)

        assert [a.quantity for a in item_by_id(store.state, item).assignments] == [1, 1, 1, 1]

    def test_no_participants_is_noop(self, store):
        """Test assign-all without participants changes nothing."""
        item = add_item(store, "Coke", 60, 5)
        store.assign_all(item)

        assert item_by_id(store.state, item).assignments == ()

    def test_unassign_all(self, store, four_people):
        """Test unassign-all clears every record on the item."""
        item = add_item(store, "Coke", 60, 5)
        store.assign_all(item)
        store.unassign_all(item)

        assert item_by_id(store.state, item).assignments == ()


class TestChargesAndLifecycle:
    """Tests for tax, tip, reset and bulk load."""

    def test_set_tax_and_tip(self, store):
        """Test tax and tip are replaced as given, negatives included."""
        store.set_tax(100)
        store.set_tip(-5)

        assert store.state.tax_amount == 100
        assert store.state.tip_amount == -5

    def test_reset(self, store, four_people):
        """Test reset returns the empty initial state."""
        add_item(store, "Coke", 60, 5)
        store.set_tax(10)

        assert store.reset() == INITIAL_STATE

    def test_reset_then_load_bulk_round_trip(self, store, four_people):
        """Test loading a bill yields exactly the given items, people and tax."""
        add_item(store, "Stale", 1)
        people = (
            Participant(id="u1", name="Alice", color=ParticipantColor.EMERALD),
            Participant(id="u2", name="Bob", color=ParticipantColor.BLUE),
        )
        items = (
            LineItem(id="d1", name="Bread", unit_price=180),
            LineItem(
                id="d2", name="Coke", unit_price=60, quantity=2,
                assignments=(AssignmentRecord(participant_id="u1", quantity=2),),
            ),
        )

        store.reset()
        state = store.load_bulk(items, people, 285)

        assert state.items == items
        assert state.participants == people
        assert state.tax_amount == 285
        assert state.tip_amount == 0
        assert state.selected_item_id is None
        assert state.items[0].assignments == ()

    def test_load_bulk_drops_unknown_participants(self, store):
        """Test bulk-loaded items never reference participants outside the load."""
        people = (Participant(id="u1", name="Alice", color=ParticipantColor.EMERALD),)
        items = (
            LineItem(
                id="d1", name="Coke", unit_price=60, quantity=2,
                assignments=(
                    AssignmentRecord(participant_id="u1", quantity=1),
                    AssignmentRecord(participant_id="u9", quantity=1),
                ),
            ),
        )

        state = store.load_bulk(items, people)

        assert state.items[0].assignments == (AssignmentRecord(participant_id="u1", quantity=1),)


class TestImmutability:
    """Tests that transitions never modify existing snapshots."""

    def test_previous_snapshot_unchanged(self, store, four_people):
        """Test a reader's snapshot survives later dispatches."""
        item = add_item(store, "Coke", 60, 5)
        snapshot = store.state

        store.assign_all(item)
        store.remove_participant(four_people[0])
        store.set_tax(50)

        assert item_by_id(snapshot, item).assignments == ()
        assert len(snapshot.participants) == 4
        assert snapshot.tax_amount == 0

    def test_models_are_frozen(self, store):
        """Test state objects reject attribute assignment."""
        with pytest.raises(ValidationError):
            store.state.tax_amount = 5

    def test_untouched_items_are_shared(self, store, four_people):
        """Test items not affected by a transition are reused as-is."""
        first = add_item(store, "Coke", 60, 5)
        add_item(store, "Pizza", 500)
        before = store.state

        after = apply_action(before, AssignAll(item_id=first))

        assert after.items[1] is before.items[1]
        assert after.items[0] is not before.items[0]

    def test_apply_action_is_pure(self):
        """Test the reducer works on plain snapshots without a store."""
        state = apply_action(INITIAL_STATE, AddItem(item_id="x", name="Tea", unit_price=20))

        assert INITIAL_STATE.items == ()
        assert state.items[0].id == "x"
        assert apply_action(state, Reset()) == INITIAL_STATE

    def test_store_starts_from_given_state(self):
        """Test a store can be seeded with an existing snapshot."""
        seeded = apply_action(INITIAL_STATE, AddItem(name="Tea", unit_price=20))

        assert BillStore(seeded).state is seeded
