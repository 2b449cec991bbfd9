"""pytest configuration and shared fixtures."""

import re

import pytest

from contract_selector import Contract, Message, PathMatcher


@pytest.fixture
def order_created():
    """Contract for an order-created event."""
    return Contract(
        name="order_created",
        headers={"eventType": "order-created", "version": re.compile(r"\d+")},
        body={
            "orderId": 1,
            "customer": {"name": "Alice", "email": "alice@example.com"},
            "items": [
                {"sku": "A-1", "qty": 2},
                {"sku": "B-7", "qty": 1},
            ],
        },
    )


@pytest.fixture
def order_cancelled():
    """Contract for an order-cancelled event with an override matcher."""
    return Contract(
        name="order_cancelled",
        headers={"eventType": "order-cancelled"},
        body={"orderId": 1, "reason": "ANYTHING"},
        body_matchers=[PathMatcher.by_regex("$.reason", r"[a-z ]+")],
    )


@pytest.fixture
def created_message():
    """Message conforming to ``order_created``."""
    return Message(
        payload={
            "orderId": 1,
            "customer": {"name": "Alice", "email": "alice@example.com"},
            "items": [
                {"sku": "B-7", "qty": 1},
                {"sku": "A-1", "qty": 2},
                {"sku": "C-3", "qty": 9},
            ],
        },
        headers={"eventType": "order-created", "version": 3, "traceId": "abc"},
    )
