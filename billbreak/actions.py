"""Bill transitions as a closed set of tagged actions.

Each action is a frozen model with a literal ``type`` tag; ``BillAction``
is the discriminated union of all of them, so the same objects are built
in-process by ``BillStore`` and parsed from JSON by the API. Actions that
create an entity carry its id, generated when the action is built.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import LineItem, Participant, ParticipantColor, generate_id


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


# -------- Items --------

class SetItems(_Action):
    type: Literal["set_items"] = "set_items"
    items: tuple[LineItem, ...]


class AddItem(_Action):
    type: Literal["add_item"] = "add_item"
    item_id: str = Field(default_factory=generate_id)
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class RemoveItem(_Action):
    type: Literal["remove_item"] = "remove_item"
    item_id: str


class UpdateItem(_Action):
    type: Literal["update_item"] = "update_item"
    item_id: str
    name: str | None = None
    unit_price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=1)


class SelectItem(_Action):
    type: Literal["select_item"] = "select_item"
    item_id: str | None = None


# -------- Participants --------

class AddParticipant(_Action):
    type: Literal["add_participant"] = "add_participant"
    participant_id: str = Field(default_factory=generate_id)
    name: str


class AddParticipantWithColor(_Action):
    type: Literal["add_participant_with_color"] = "add_participant_with_color"
    participant_id: str = Field(default_factory=generate_id)
    name: str
    color: ParticipantColor


class RemoveParticipant(_Action):
    type: Literal["remove_participant"] = "remove_participant"
    participant_id: str


class UpdateParticipant(_Action):
    type: Literal["update_participant"] = "update_participant"
    participant_id: str
    name: str | None = None
    color: ParticipantColor | None = None


class SetParticipants(_Action):
    type: Literal["set_participants"] = "set_participants"
    participants: tuple[Participant, ...]


# -------- Assignment --------

class Assign(_Action):
    type: Literal["assign"] = "assign"
    item_id: str
    participant_id: str
    quantity: int = Field(ge=0)


class Unassign(_Action):
    type: Literal["unassign"] = "unassign"
    item_id: str
    participant_id: str


class ToggleAssignment(_Action):
    type: Literal["toggle_assignment"] = "toggle_assignment"
    item_id: str
    participant_id: str


class AssignAll(_Action):
    type: Literal["assign_all"] = "assign_all"
    item_id: str


class UnassignAll(_Action):
    type: Literal["unassign_all"] = "unassign_all"
    item_id: str


# -------- Charges --------

class SetTax(_Action):
    type: Literal["set_tax"] = "set_tax"
    amount: float


class SetTip(_Action):
    type: Literal["set_tip"] = "set_tip"
    amount: float


# -------- Reset & bulk load --------

class Reset(_Action):
    type: Literal["reset"] = "reset"


class LoadBulk(_Action):
    type: Literal["load_bulk"] = "load_bulk"
    items: tuple[LineItem, ...]
    participants: tuple[Participant, ...]
    tax_amount: float = 0.0


BillAction = Annotated[
    Union[
        SetItems,
        AddItem,
        RemoveItem,
        UpdateItem,
        SelectItem,
        AddParticipant,
        AddParticipantWithColor,
        RemoveParticipant,
        UpdateParticipant,
        SetParticipants,
        Assign,
        Unassign,
        ToggleAssignment,
        AssignAll,
        UnassignAll,
        SetTax,
        SetTip,
        Reset,
        LoadBulk,
    ],
    Field(discriminator="type"),
]
