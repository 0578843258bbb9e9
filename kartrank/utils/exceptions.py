"""
Error taxonomy for KartRank operations with user-friendly messages.

Every orchestrator failure surfaces as one of these. Validation and not-found
errors are raised before any write; conflicts mean the request can never
succeed as submitted; internal errors mean the transaction was rolled back.
"""

class KartRankError(Exception):
    """Base exception for KartRank operation errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class ValidationError(KartRankError):
    """Raised when submitted data is invalid. Safe to retry after correcting input."""
    pass

class ConflictError(KartRankError):
    """Raised when the target is in a state that forbids the operation."""
    pass

class NotFoundError(KartRankError):
    """Raised when a match, round, tournament or player does not exist."""
    def __init__(self, entity: str, identifier=None):
        if identifier is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {identifier} not found"
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier

class InternalError(KartRankError):
    """Raised when storage fails. Nothing was committed, so the whole call can be retried."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Something went wrong while saving. Please try again."
        )
        self.operation = operation
