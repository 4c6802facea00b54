class AromaError(Exception):
    """Base class for errors raised by the ordering backend."""


class ValidationError(AromaError, ValueError):
    """Malformed or missing input."""


class InvalidItem(ValidationError):
    def __init__(self, item_id) -> None:
        super().__init__(f"Invalid item {item_id}")
        self.item_id = item_id


class NotFoundError(AromaError, LookupError):
    """Unknown order, item, category or table."""


class InvalidTransition(AromaError):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move order from {current} to {requested}")
        self.current = current
        self.requested = requested


class ExternalServiceError(AromaError):
    """The payment provider is unavailable or rejected the request."""


class PersistenceError(AromaError):
    """Reading or writing the backing store failed."""
