"""
Error taxonomy for the stock ledger.

LedgerError (base, carries a machine-readable ``code``)
|
+-- ValidationError   malformed input, reported per field
+-- NotFoundError     product or movement absent, or owned by someone else
+-- PersistenceError  the underlying store failed

The HTTP layer maps these to 400, 404 and 500 respectively. A NotFoundError
never says whether the row exists under another owner.
"""

from typing import Optional


class LedgerError(Exception):
    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.detail = message

    def errors(self) -> list[dict]:
        return [{"field": self.field, "message": self.detail}]


class NotFoundError(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class PersistenceError(LedgerError):
    code = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, message: str = "Storage operation failed"):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
