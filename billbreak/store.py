# billbreak/store.py
from typing import Callable, Iterable, assert_never

from loguru import logger

from . import split_logic
from .actions import (
    AddItem,
    AddParticipant,
    AddParticipantWithColor,
    Assign,
    AssignAll,
    BillAction,
    LoadBulk,
    RemoveItem,
    RemoveParticipant,
    Reset,
    SelectItem,
    SetItems,
    SetParticipants,
    SetTax,
    SetTip,
    ToggleAssignment,
    Unassign,
    UnassignAll,
    UpdateItem,
    UpdateParticipant,
)
from .models import (
    INITIAL_STATE,
    AssignmentRecord,
    BillState,
    LineItem,
    Participant,
    ParticipantColor,
    find_assignment,
    next_participant_color,
    remaining_quantity,
)


def _update_item(state: BillState, item_id: str, fn: Callable[[LineItem], LineItem]) -> BillState:
    """Replace the item with ``item_id`` by ``fn(item)``; untouched items are shared."""
    items = tuple(fn(item) if item.id == item_id else item for item in state.items)
    return state.model_copy(update={"items": items})


def _without_participant(item: LineItem, participant_id: str) -> LineItem:
    assignments = tuple(a for a in item.assignments if a.participant_id != participant_id)
    return item.model_copy(update={"assignments": assignments})


def _for_participants(items: Iterable[LineItem], participants: Iterable[Participant]) -> tuple[LineItem, ...]:
    """``items`` with assignment records kept only for ``participants``."""
    present = {p.id for p in participants}
    return tuple(
        item.model_copy(update={
            "assignments": tuple(a for a in item.assignments if a.participant_id in present)
        })
        for item in items
    )


def _has_participant(state: BillState, participant_id: str) -> bool:
    return any(p.id == participant_id for p in state.participants)


def _upsert_assignment(item: LineItem, participant_id: str, quantity: int) -> LineItem:
    if find_assignment(item, participant_id) is None:
        assignments = item.assignments + (AssignmentRecord(participant_id=participant_id, quantity=quantity),)
    else:
        assignments = tuple(
            AssignmentRecord(participant_id=participant_id, quantity=quantity)
            if a.participant_id == participant_id else a
            for a in item.assignments
        )
    return item.model_copy(update={"assignments": assignments})


def _toggle_assignment(item: LineItem, participant_id: str) -> LineItem:
    if find_assignment(item, participant_id) is not None:
        return _without_participant(item, participant_id)
    # Single units toggle on/off; multi-unit items hand over whatever is unclaimed
    quantity = 1 if item.quantity == 1 else max(1, remaining_quantity(item))
    return _upsert_assignment(item, participant_id, quantity)


def _assign_all(item: LineItem, participants: tuple[Participant, ...]) -> LineItem:
    count = len(participants)
    if count == 0:
        return item
    if item.quantity >= count:
        base, remainder = divmod(item.quantity, count)
        assignments = tuple(
            AssignmentRecord(participant_id=p.id, quantity=base + (1 if index < remainder else 0))
            for index, p in enumerate(participants)
        )
    else:
        # Shared item (one pizza, four people): one claim each, split by share_amount
        assignments = tuple(AssignmentRecord(participant_id=p.id, quantity=1) for p in participants)
    return item.model_copy(update={"assignments": assignments})


def apply_action(state: BillState, action: BillAction) -> BillState:
    """Apply one transition and return the new snapshot. ``state`` is never modified.

    Unknown item or participant ids leave the state unchanged, and so does
    adding an entity under an id that is already taken.
    """
    match action:
        # -------- Items --------
        case SetItems():
            selected = state.selected_item_id
            if selected is not None and all(item.id != selected for item in action.items):
                selected = None
            items = _for_participants(action.items, state.participants)
            return state.model_copy(update={"items": items, "selected_item_id": selected})

        case AddItem():
            if any(item.id == action.item_id for item in state.items):
                return state
            item = LineItem(
                id=action.item_id,
                name=action.name,
                unit_price=action.unit_price,
                quantity=action.quantity,
            )
            return state.model_copy(update={"items": state.items + (item,)})

        case RemoveItem():
            items = tuple(item for item in state.items if item.id != action.item_id)
            selected = None if state.selected_item_id == action.item_id else state.selected_item_id
            return state.model_copy(update={"items": items, "selected_item_id": selected})

        case UpdateItem():
            changes = {
                field: value
                for field, value in (
                    ("name", action.name),
                    ("unit_price", action.unit_price),
                    ("quantity", action.quantity),
                )
                if value is not None
            }
            return _update_item(state, action.item_id, lambda item: item.model_copy(update=changes))

        case SelectItem():
            return state.model_copy(update={"selected_item_id": action.item_id})

        # -------- Participants --------
        case AddParticipant():
            if _has_participant(state, action.participant_id):
                return state
            participant = Participant(
                id=action.participant_id,
                name=action.name,
                color=next_participant_color(state.participants),
            )
            return state.model_copy(update={"participants": state.participants + (participant,)})

        case AddParticipantWithColor():
            if _has_participant(state, action.participant_id):
                return state
            participant = Participant(id=action.participant_id, name=action.name, color=action.color)
            return state.model_copy(update={"participants": state.participants + (participant,)})

        case RemoveParticipant():
            participants = tuple(p for p in state.participants if p.id != action.participant_id)
            items = tuple(_without_participant(item, action.participant_id) for item in state.items)
            return state.model_copy(update={"participants": participants, "items": items})

        case UpdateParticipant():
            changes = {
                field: value
                for field, value in (("name", action.name), ("color", action.color))
                if value is not None
            }
            participants = tuple(
                p.model_copy(update=changes) if p.id == action.participant_id else p
                for p in state.participants
            )
            return state.model_copy(update={"participants": participants})

        case SetParticipants():
            items = _for_participants(state.items, action.participants)
            return state.model_copy(update={"participants": action.participants, "items": items})

        # -------- Assignment --------
        case Assign():
            return _update_item(
                state, action.item_id,
                lambda item: _upsert_assignment(item, action.participant_id, action.quantity),
            )

        case Unassign():
            return _update_item(
                state, action.item_id,
                lambda item: _without_participant(item, action.participant_id),
            )

        case ToggleAssignment():
            return _update_item(
                state, action.item_id,
                lambda item: _toggle_assignment(item, action.participant_id),
            )

        case AssignAll():
            return _update_item(state, action.item_id, lambda item: _assign_all(item, state.participants))

        case UnassignAll():
            return _update_item(state, action.item_id, lambda item: item.model_copy(update={"assignments": ()}))

        # -------- Charges --------
        case SetTax():
            return state.model_copy(update={"tax_amount": action.amount})

        case SetTip():
            return state.model_copy(update={"tip_amount": action.amount})

        # -------- Reset & bulk load --------
        case Reset():
            return INITIAL_STATE

        case LoadBulk():
            return INITIAL_STATE.model_copy(update={
                "items": _for_participants(action.items, action.participants),
                "participants": action.participants,
                "tax_amount": action.tax_amount,
            })

        case _:
            assert_never(action)


class BillStore:
    """Holds the current bill snapshot for one session.

    Owned by whoever composes the application (the FastAPI app factory or
    a Streamlit session) and passed to the code that reads or changes it.
    Every dispatch replaces ``state`` with a new snapshot; derived values
    are recomputed from the current snapshot on each read.
    """

    def __init__(self, state: BillState = INITIAL_STATE):
        self._state = state

    @property
    def state(self) -> BillState:
        return self._state

    def dispatch(self, action: BillAction) -> BillState:
        logger.debug(f"Applying {action.type}")
        self._state = apply_action(self._state, action)
        return self._state

    # -------- Items --------

    def set_items(self, items: Iterable[LineItem]) -> BillState:
        return self.dispatch(SetItems(items=tuple(items)))

    def add_item(self, name: str, unit_price: float, quantity: int = 1) -> BillState:
        return self.dispatch(AddItem(name=name, unit_price=unit_price, quantity=quantity))

    def remove_item(self, item_id: str) -> BillState:
        return self.dispatch(RemoveItem(item_id=item_id))

    def update_item(self, item_id: str, **changes) -> BillState:
        return self.dispatch(UpdateItem(item_id=item_id, **changes))

    def select_item(self, item_id: str | None) -> BillState:
        return self.dispatch(SelectItem(item_id=item_id))

    # -------- Participants --------

    def add_participant(self, name: str) -> BillState:
        return self.dispatch(AddParticipant(name=name))

    def add_participant_with_color(self, name: str, color: ParticipantColor) -> BillState:
        return self.dispatch(AddParticipantWithColor(name=name, color=color))

    def remove_participant(self, participant_id: str) -> BillState:
        return self.dispatch(RemoveParticipant(participant_id=participant_id))

    def update_participant(self, participant_id: str, **changes) -> BillState:
        return self.dispatch(UpdateParticipant(participant_id=participant_id, **changes))

    def set_participants(self, participants: Iterable[Participant]) -> BillState:
        return self.dispatch(SetParticipants(participants=tuple(participants)))

    # -------- Assignment --------

    def assign(self, item_id: str, participant_id: str, quantity: int) -> BillState:
        return self.dispatch(Assign(item_id=item_id, participant_id=participant_id, quantity=quantity))

    def unassign(self, item_id: str, participant_id: str) -> BillState:
        return self.dispatch(Unassign(item_id=item_id, participant_id=participant_id))

    def toggle(self, item_id: str, participant_id: str) -> BillState:
        return self.dispatch(ToggleAssignment(item_id=item_id, participant_id=participant_id))

    def assign_all(self, item_id: str) -> BillState:
        return self.dispatch(AssignAll(item_id=item_id))

    def unassign_all(self, item_id: str) -> BillState:
        return self.dispatch(UnassignAll(item_id=item_id))

    # -------- Charges --------

    def set_tax(self, amount: float) -> BillState:
        return self.dispatch(SetTax(amount=amount))

    def set_tip(self, amount: float) -> BillState:
        return self.dispatch(SetTip(amount=amount))

    # -------- Reset & bulk load --------

    def reset(self) -> BillState:
        return self.dispatch(Reset())

    def load_bulk(self, items: Iterable[LineItem], participants: Iterable[Participant], tax_amount: float = 0.0) -> BillState:
        return self.dispatch(LoadBulk(items=tuple(items), participants=tuple(participants), tax_amount=tax_amount))

    # -------- Derived values --------

    @property
    def progress(self) -> int:
        return split_logic.progress(self._state)

    @property
    def subtotal(self) -> float:
        return split_logic.subtotal(self._state)

    @property
    def grand_total(self) -> float:
        return split_logic.grand_total(self._state)

    @property
    def user_shares(self) -> list[split_logic.UserShare]:
        return split_logic.user_shares(self._state)

    @property
    def is_ready(self) -> bool:
        return split_logic.is_ready(self._state)
