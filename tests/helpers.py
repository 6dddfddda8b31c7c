"""Small helpers shared by the test modules."""


def add_item(store, name, unit_price, quantity=1):
    """Add an item and return its id."""
    store.add_item(name, unit_price, quantity)
    return store.state.items[-1].id


def item_by_id(state, item_id):
    return next(item for item in state.items if item.id == item_id)
