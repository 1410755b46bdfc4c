"""
Commerce Service: infrastructure errors

Raised (not returned) for faults the caller cannot fix: storage writes that
touch no rows, or a broker that refuses an event. The HTTP layer maps them
to 500.
"""


class CommerceError(Exception):
    """Base class for unexpected service faults."""


class OrderPersistenceError(CommerceError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Failed to update order '{order_id}'.")
        self.order_id = order_id


class NotificationError(CommerceError):
    def __init__(self, event_name: str, reason: str) -> None:
        super().__init__(f"Failed to publish event '{event_name}': {reason}")
        self.event_name = event_name
        self.reason = reason
