"""Change events and the in-process change feed."""

from cleaning_billing.events.feed import ChangeFeed, ChangeHandler, Subscription
from cleaning_billing.events.types import ChangeEvent, ChangeOperation

__all__ = [
    "ChangeEvent",
    "ChangeOperation",
    "ChangeFeed",
    "ChangeHandler",
    "Subscription",
]
