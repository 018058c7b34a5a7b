"""
Domain exceptions.

Services raise these instead of HTTPException so they can be called from the
scheduler and from tests without an HTTP context. ``main.py`` maps each class
to its status code.
"""


class PharmacyError(Exception):
    """Base class for every domain failure."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PharmacyError):
    """A referenced entity id does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id=None, message: str = None):
        self.entity = entity
        self.entity_id = entity_id
        if message is None:
            message = f"{entity} not found" if entity_id is None else f"{entity} with ID {entity_id} not found"
        super().__init__(message)


class BusinessRuleViolation(PharmacyError):
    """A domain constraint failed."""

    status_code = 400
    code = "BUSINESS_RULE_VIOLATION"


class InsufficientStockError(BusinessRuleViolation):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, medicine_name: str, available: int, requested: int):
        self.medicine_name = medicine_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for medicine '{medicine_name}'. Available: {available}, Requested: {requested}"
        )


class ConflictError(PharmacyError):
    """Uniqueness violation, e.g. a duplicate medicine name."""

    status_code = 409
    code = "CONFLICT"


class TransientError(PharmacyError):
    """Store or transaction failure; the whole operation may be retried."""

    status_code = 503
    code = "TRANSIENT_FAILURE"
