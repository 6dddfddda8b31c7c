"""Demo bill showing shared starters, individual mains and multi-unit drinks."""

from .actions import LoadBulk
from .models import LineItem, Participant, ParticipantColor

DEMO_PARTICIPANTS = (
    Participant(id="u1", name="Alice", color=ParticipantColor.EMERALD),
    Participant(id="u2", name="Bob", color=ParticipantColor.BLUE),
    Participant(id="u3", name="Carol", color=ParticipantColor.PURPLE),
    Participant(id="u4", name="Dave", color=ParticipantColor.ROSE),
)

DEMO_ITEMS = (
    # Shared starters
    LineItem(id="d1", name="Garlic Bread", unit_price=180, quantity=1),
    LineItem(id="d2", name="Nachos Grande", unit_price=350, quantity=1),
    # Mains
    LineItem(id="d3", name='Margherita Pizza (12")', unit_price=450, quantity=1),
    LineItem(id="d4", name='Pepperoni Pizza (12")', unit_price=550, quantity=1),
    LineItem(id="d5", name="Chicken Alfredo Pasta", unit_price=380, quantity=1),
    LineItem(id="d6", name="Grilled Salmon", unit_price=650, quantity=1),
    # Drinks
    LineItem(id="d7", name="Coca-Cola", unit_price=60, quantity=5),
    LineItem(id="d8", name="Fresh Lime Soda", unit_price=80, quantity=3),
    LineItem(id="d9", name="Craft Beer Pitcher", unit_price=450, quantity=2),
    # Desserts
    LineItem(id="d10", name="Chocolate Brownie", unit_price=220, quantity=2),
    LineItem(id="d11", name="Ice Cream Sundae", unit_price=180, quantity=1),
)

DEMO_TAX = 285  # 5% GST


def load_demo_action() -> LoadBulk:
    return LoadBulk(items=DEMO_ITEMS, participants=DEMO_PARTICIPANTS, tax_amount=DEMO_TAX)
