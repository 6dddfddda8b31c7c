# billbreak/streamlit_app.py
# Run with: streamlit run billbreak/streamlit_app.py
import streamlit as st
from loguru import logger

from billbreak import split_logic
from billbreak.config import CURRENCY_SYMBOL, MAX_IMAGE_SIZE_BYTES, MAX_IMAGE_SIZE_MB, configure_logging
from billbreak.demo import load_demo_action
from billbreak.gemini_ocr import ReceiptParseError, extract_receipt_with_gemini
from billbreak.models import LineItem, participant_quantity
from billbreak.report import format_amount, item_breakdown_frame, shares_to_frame
from billbreak.store import BillStore


def get_store() -> BillStore:
    """The session's bill store, created on first use."""
    if "bill_store" not in st.session_state:
        st.session_state.bill_store = BillStore()
    return st.session_state.bill_store


def render_upload(store: BillStore):
    st.header("1. Upload Receipt")
    uploaded_file = st.file_uploader("Upload a receipt image", type=["jpg", "jpeg", "png"], label_visibility="collapsed")
    st.caption("Powered by Google Gemini")

    if uploaded_file is not None:
        current_file_info = (uploaded_file.name, uploaded_file.size)
        if st.session_state.get("last_uploaded_file_info") != current_file_info:
            st.session_state.last_uploaded_file_info = current_file_info
            st.session_state.parsed_receipt = None
            if uploaded_file.size > MAX_IMAGE_SIZE_BYTES:
                st.error(f"Image too large. Max {MAX_IMAGE_SIZE_MB} MB.")
            else:
                with st.spinner('⚙️ Processing receipt with Gemini... This may take a few moments.'):
                    try:
                        st.session_state.parsed_receipt = extract_receipt_with_gemini(uploaded_file.getvalue())
                    except ReceiptParseError as e:
                        logger.warning(f"Receipt parsing failed: {e}")
                        st.error(f"Could not read the receipt: {e}")

    parsed = st.session_state.get("parsed_receipt")
    if parsed is not None:
        st.success(f"Found {len(parsed.items)} line item(s).")
        for item in parsed.items:
            st.write(f"{item.name}: {item.quantity} x {format_amount(item.price)}")
        if st.button("✅ Use these items", type="primary"):
            store.set_items(parsed.to_line_items())
            store.set_tax(parsed.total_tax)
            st.session_state.parsed_receipt = None
            st.rerun()

    if st.button("Load demo bill"):
        store.dispatch(load_demo_action())
        st.rerun()


def render_manual_entry(store: BillStore):
    with st.expander("Manually Add Item", expanded=not store.state.items):
        with st.form("manual_item_entry", clear_on_submit=True):
            name = st.text_input("Item Name")
            quantity = st.number_input("Quantity", min_value=1, value=1, step=1)
            unit_price = st.number_input(f"Unit Price ({CURRENCY_SYMBOL})", min_value=0.0, step=10.0, format="%.2f")
            if st.form_submit_button("➕ Add Item") and name.strip():
                store.add_item(name.strip(), float(unit_price), int(quantity))
                st.rerun()


def render_participants(store: BillStore):
    st.subheader("👥 People Splitting")
    with st.form("add_participant", clear_on_submit=True):
        name = st.text_input("Name")
        if st.form_submit_button("Add person") and name.strip():
            store.add_participant(name.strip())
            st.rerun()
    for participant in store.state.participants:
        col_name, col_remove = st.columns([4, 1])
        col_name.write(f"**{participant.name}** ({participant.color.value})")
        if col_remove.button("Remove", key=f"remove_p_{participant.id}"):
            store.remove_participant(participant.id)
            st.rerun()


def item_edits(item: LineItem, name: str, unit_price: float, quantity: int) -> dict:
    """The fields of ``item`` the edit form actually changed."""
    edits = {"name": name.strip(), "unit_price": float(unit_price), "quantity": int(quantity)}
    if not edits["name"]:
        del edits["name"]
    return {field: value for field, value in edits.items() if getattr(item, field) != value}


def render_item_editor(store: BillStore, item: LineItem):
    with st.form(f"edit_{item.id}"):
        col_name, col_qty, col_price = st.columns([3, 1, 2])
        name = col_name.text_input("Item Name", value=item.name, key=f"edit_name_{item.id}")
        quantity = col_qty.number_input("Qty", min_value=1, value=item.quantity, step=1, key=f"edit_qty_{item.id}")
        unit_price = col_price.number_input(
            f"Unit Price ({CURRENCY_SYMBOL})", min_value=0.0, value=float(item.unit_price),
            step=10.0, format="%.2f", key=f"edit_price_{item.id}",
        )
        if st.form_submit_button("💾 Save changes"):
            changes = item_edits(item, name, unit_price, quantity)
            if changes:
                store.update_item(item.id, **changes)
                st.rerun()


def render_assignment(store: BillStore):
    st.subheader("🛒 Assign Items")
    st.progress(store.progress / 100, text=f"{store.progress}% assigned")
    state = store.state
    for item in state.items:
        with st.expander(f"{item.name}: {item.quantity} x {format_amount(item.unit_price)}"):
            col_all, col_clear, col_remove = st.columns(3)
            if col_all.button("Split between everyone", key=f"all_{item.id}"):
                store.assign_all(item.id)
                st.rerun()
            if col_clear.button("Clear", key=f"clear_{item.id}"):
                store.unassign_all(item.id)
                st.rerun()
            if col_remove.button("Delete item", key=f"del_{item.id}"):
                store.remove_item(item.id)
                st.rerun()
            render_item_editor(store, item)
            for participant in state.participants:
                current = participant_quantity(item, participant.id)
                claimed = st.number_input(
                    participant.name, min_value=0, value=current, step=1,
                    key=f"qty_{item.id}_{participant.id}_{current}",
                )
                if claimed != current:
                    if claimed == 0:
                        store.unassign(item.id, participant.id)
                    else:
                        store.assign(item.id, participant.id, int(claimed))
                    st.rerun()


def render_charges(store: BillStore):
    st.subheader("💸 Tax & Tip")
    tax = st.number_input(f"Tax Amount ({CURRENCY_SYMBOL})", min_value=0.0, value=float(store.state.tax_amount), step=10.0)
    tip = st.number_input(f"Tip Amount ({CURRENCY_SYMBOL})", min_value=0.0, value=float(store.state.tip_amount), step=10.0)
    if tax != store.state.tax_amount:
        store.set_tax(tax)
    if tip != store.state.tip_amount:
        store.set_tip(tip)


def render_results(store: BillStore):
    st.subheader("📊 Split Results")
    st.write(f"Subtotal {format_amount(store.subtotal)} · Grand total **{format_amount(store.grand_total)}**")
    if not store.is_ready:
        st.info("Assign every item to at least one person to see the split.")
        return
    shares = store.user_shares
    st.dataframe(shares_to_frame(shares), use_container_width=True)
    for share in shares:
        if share.items:
            with st.expander(f"{share.participant.name}'s Items ({share.item_count}) - Subtotal: {format_amount(share.subtotal)}"):
                st.dataframe(item_breakdown_frame(share), use_container_width=True)
    partial = split_logic.partially_assigned_items(store.state)
    if partial:
        st.warning("Partly claimed: " + ", ".join(item.name for item in partial))


def main():
    configure_logging()
    st.set_page_config(page_title="BillBreak", page_icon="🧾", layout="wide")
    st.title("🧾 BillBreak")
    store = get_store()

    col_upload, col_split = st.columns([1, 2])
    with col_upload:
        render_upload(store)
        render_manual_entry(store)
        render_participants(store)
        if st.button("🔄 Start over"):
            store.reset()
            st.rerun()
    with col_split:
        render_assignment(store)
        render_charges(store)
        render_results(store)


if __name__ == "__main__":
    main()
