class FinanceError(Exception):
    """Base class for errors raised by the service layer."""


class ValidationError(FinanceError):
    """Malformed input; rejected before any write."""


class AuthorizationError(FinanceError):
    """The target entity belongs to another user."""


class NotFoundError(FinanceError):
    """A referenced account, category, transaction or budget does not exist."""

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConsistencyError(FinanceError):
    """
    The storage layer failed while applying a ledger change.

    The unit of work has been rolled back, so neither the entity write nor the
    balance update is visible.
    """
