"""Shared fixtures for bill tests."""

import pytest

from billbreak.store import BillStore


@pytest.fixture
def store():
    return BillStore()


@pytest.fixture
def four_people(store):
    """Store with Alice, Bob, Carol and Dave; returns their ids in order."""
    for name in ("Alice", "Bob", "Carol", "Dave"):
        store.add_participant(name)
    return [p.id for p in store.state.participants]
