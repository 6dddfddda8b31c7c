# billbreak/split_logic.py
from pydantic import BaseModel, ConfigDict

from .models import BillState, LineItem, Participant, assigned_quantity


class ItemShare(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: LineItem
    quantity: int
    share_amount: float


class UserShare(BaseModel):
    """What one participant owes: item shares plus proportional tax and tip."""
    model_config = ConfigDict(frozen=True)

    participant: Participant
    subtotal: float
    tax_share: float
    tip_share: float
    total: float
    item_count: int
    items: tuple[ItemShare, ...]


def progress(state: BillState) -> int:
    """Percentage (0-100) of listed item quantity that has been claimed.

    Over-claimed shared items count as fully covered, never more.
    """
    if not state.items:
        return 0
    total_quantity = sum(item.quantity for item in state.items)
    covered_quantity = sum(min(assigned_quantity(item), item.quantity) for item in state.items)
    return round(covered_quantity / total_quantity * 100)

def subtotal(state: BillState) -> float:
    """Sum of listed item totals, independent of assignment."""
    return sum((item.unit_price * item.quantity for item in state.items), 0.0)

def grand_total(state: BillState) -> float:
    return subtotal(state) + state.tax_amount + state.tip_amount


def _share_amount(item: LineItem, quantity: int) -> float:
    # Item value is divided by claimed weight, so N claims of 1 on a single
    # pizza cost total/N each rather than a full unit price each.
    total_claimed = assigned_quantity(item)
    if total_claimed <= 0:
        return 0.0
    return item.total_price * (quantity / total_claimed)

def _item_shares(state: BillState, participant_id: str) -> list[ItemShare]:
    shares = []
    for item in state.items:
        for record in item.assignments:
            if record.participant_id == participant_id and record.quantity > 0:
                shares.append(ItemShare(item=item, quantity=record.quantity,
                                        share_amount=_share_amount(item, record.quantity)))
    return shares

def user_subtotal(state: BillState, participant_id: str) -> float:
    return sum((s.share_amount for s in _item_shares(state, participant_id)), 0.0)

def user_shares(state: BillState) -> list[UserShare]:
    """Per-participant breakdown, in participant list order.

    Tax and tip are split by each participant's share of the bill subtotal,
    so whoever claimed the expensive items absorbs more of them.
    """
    bill_subtotal = subtotal(state)
    results = []
    for participant in state.participants:
        # --- Step 1: proportional share of each claimed item ---
        item_shares = _item_shares(state, participant.id)
        participant_subtotal = sum((s.share_amount for s in item_shares), 0.0)

        # --- Step 2: tax and tip by share of the bill subtotal ---
        share_ratio = participant_subtotal / bill_subtotal if bill_subtotal > 0 else 0.0
        tax_share = state.tax_amount * share_ratio
        tip_share = state.tip_amount * share_ratio

        results.append(UserShare(
            participant=participant,
            subtotal=participant_subtotal,
            tax_share=tax_share,
            tip_share=tip_share,
            total=participant_subtotal + tax_share + tip_share,
            item_count=len(item_shares),
            items=tuple(item_shares),
        ))
    return results


def is_ready(state: BillState) -> bool:
    """True once there are items and people and every item has at least one claim.

    Partial claims are enough; ``fully_assigned_item_count`` reports coverage.
    """
    if not state.items or not state.participants:
        return False
    return all(assigned_quantity(item) > 0 for item in state.items)

def fully_assigned_item_count(state: BillState) -> int:
    return sum(1 for item in state.items if assigned_quantity(item) >= item.quantity)

def unassigned_items(state: BillState) -> list[LineItem]:
    return [item for item in state.items if assigned_quantity(item) == 0]

def partially_assigned_items(state: BillState) -> list[LineItem]:
    return [item for item in state.items if 0 < assigned_quantity(item) < item.quantity]
