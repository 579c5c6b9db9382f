"""
Typed errors raised by the stock ledger.

Every error carries a machine-readable ``code`` so the HTTP layer (and any
other caller) can branch on the type instead of parsing messages:

    LedgerError
    +-- ValidationError          malformed or missing input
    +-- NotFoundError            a referenced row does not exist
    +-- UniquenessConflict       SKU race still unresolved after one re-read
    +-- InsufficientStockError   adjustment would drive quantity negative
    +-- StorageUnavailable       transport or transaction failure
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: int):
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class UniquenessConflict(LedgerError):
    code = "UNIQUENESS_CONFLICT"

    def __init__(self, entity_type: str, key: str):
        super().__init__(f"Concurrent create of {entity_type} {key!r} could not be resolved")
        self.entity_type = entity_type
        self.key = key


class InsufficientStockError(LedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, quantity: Decimal, delta: Decimal):
        super().__init__(f"Stock item {item_id} holds {quantity}, cannot apply {delta}")
        self.item_id = item_id
        self.quantity = quantity
        self.delta = delta


class StorageUnavailable(LedgerError):
    code = "STORAGE_UNAVAILABLE"
