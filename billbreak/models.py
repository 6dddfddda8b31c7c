"""Bill state models.

Everything here is a frozen pydantic model and every collection is a
tuple, so a ``BillState`` handed to a reader never changes underneath it.
Transitions build new snapshots with ``model_copy(update=...)``.
"""

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def generate_id() -> str:
    """Generate a unique id for a new participant or item."""
    return uuid.uuid4().hex[:12]


class ParticipantColor(str, Enum):
    EMERALD = "emerald"
    BLUE = "blue"
    PURPLE = "purple"
    ROSE = "rose"


# Palette order used when handing out colours to new participants
PARTICIPANT_PALETTE: tuple[ParticipantColor, ...] = tuple(ParticipantColor)


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str
    color: ParticipantColor


class AssignmentRecord(BaseModel):
    """A claim by one participant on some quantity of one item."""
    model_config = ConfigDict(frozen=True)

    participant_id: str
    quantity: int = Field(ge=0)


class LineItem(BaseModel):
    """One priced, quantified entry on the bill.

    ``unit_price`` is the price of a single unit; ``assignments`` holds at
    most one record per participant.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    assignments: tuple[AssignmentRecord, ...] = ()

    @property
    def total_price(self) -> float:
        return self.unit_price * self.quantity


class BillState(BaseModel):
    """The aggregate root. Progress, totals and shares are derived, never stored."""
    model_config = ConfigDict(frozen=True)

    items: tuple[LineItem, ...] = ()
    participants: tuple[Participant, ...] = ()
    tax_amount: float = 0.0
    tip_amount: float = 0.0
    selected_item_id: str | None = None


INITIAL_STATE = BillState()


def assigned_quantity(item: LineItem) -> int:
    """Total quantity claimed on an item across all participants."""
    return sum(a.quantity for a in item.assignments)


def remaining_quantity(item: LineItem) -> int:
    # Negative when a shared item is claimed beyond its quantity
    return item.quantity - assigned_quantity(item)


def is_item_fully_assigned(item: LineItem) -> bool:
    return assigned_quantity(item) >= item.quantity


def participant_quantity(item: LineItem, participant_id: str) -> int:
    for record in item.assignments:
        if record.participant_id == participant_id:
            return record.quantity
    return 0


def find_assignment(item: LineItem, participant_id: str) -> AssignmentRecord | None:
    return next((a for a in item.assignments if a.participant_id == participant_id), None)


def next_participant_color(participants: tuple[Participant, ...]) -> ParticipantColor:
    """First palette colour not in use, cycling by count once all are taken."""
    used = {p.color for p in participants}
    for color in PARTICIPANT_PALETTE:
        if color not in used:
            return color
    return PARTICIPANT_PALETTE[len(participants) % len(PARTICIPANT_PALETTE)]
