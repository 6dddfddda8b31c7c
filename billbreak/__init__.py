"""BillBreak: split a receipt between people by what each of them had."""

from .models import AssignmentRecord, BillState, LineItem, Participant, ParticipantColor
from .store import BillStore, apply_action

__all__ = [
    "AssignmentRecord",
    "BillState",
    "BillStore",
    "LineItem",
    "Participant",
    "ParticipantColor",
    "apply_action",
]
