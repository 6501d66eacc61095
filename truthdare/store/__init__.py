from .feed import ChangeEvent, ChangeFeed, Subscription, feed
from .retry import with_read_retry
from .store import Store, TABLES, row_to_dict

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "Subscription",
    "feed",
    "with_read_retry",
    "Store",
    "TABLES",
    "row_to_dict",
]
