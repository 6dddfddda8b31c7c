# billbreak/report.py
import pandas as pd

from .config import CURRENCY_SYMBOL
from .split_logic import UserShare


def format_amount(value: float, currency: str = CURRENCY_SYMBOL) -> str:
    """Whole-unit display, e.g. ``₹1,250``."""
    return f"{currency}{value:,.0f}"


def shares_to_frame(shares: list[UserShare], currency: str = CURRENCY_SYMBOL) -> pd.DataFrame:
    """Summary table, one row per participant, amounts formatted for display."""
    summary_data = []
    for share in shares:
        summary_data.append({
            "Person": share.participant.name, "Items": share.item_count,
            "Subtotal": share.subtotal, "Tax": share.tax_share,
            "Tip": share.tip_share, "Total": share.total,
        })
    summary_df = pd.DataFrame(summary_data, columns=["Person", "Items", "Subtotal", "Tax", "Tip", "Total"])
    for col_format in ["Subtotal", "Tax", "Tip", "Total"]:
        summary_df[col_format] = summary_df[col_format].apply(lambda x: format_amount(x, currency))
    return summary_df.set_index("Person")


def item_breakdown_frame(share: UserShare, currency: str = CURRENCY_SYMBOL) -> pd.DataFrame:
    item_breakdown_data = []
    for item_share in share.items:
        item_breakdown_data.append({
            "Item": item_share.item.name,
            "Qty Claimed": item_share.quantity,
            "Unit Price": format_amount(item_share.item.unit_price, currency),
            "Your Cost": format_amount(item_share.share_amount, currency),
        })
    return pd.DataFrame(item_breakdown_data, columns=["Item", "Qty Claimed", "Unit Price", "Your Cost"])
