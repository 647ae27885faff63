"""
Error taxonomy for the protein query layer.

Validation errors never reach the database. Database errors keep the
driver's diagnostic fields so callers can log them and build a message
for the UI. Statement timeouts get their own type because they are a
capacity signal, not a transient fault.
"""
from typing import Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

# PostgreSQL query_canceled, raised when statement_timeout fires
STATEMENT_TIMEOUT_SQLSTATE = "57014"


class ProteinServiceError(Exception):
    """Base class for errors surfaced by the query layer"""


class SearchValidationError(ProteinServiceError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class DatabaseError(ProteinServiceError):
    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def diagnostics(self) -> dict:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "hint": self.hint,
        }


class StatementTimeoutError(DatabaseError):
    pass


def _is_timeout(code: Optional[str], message: str) -> bool:
    if code == STATEMENT_TIMEOUT_SQLSTATE:
        return True
    lowered = message.lower()
    return "statement timeout" in lowered or "canceling statement" in lowered


def translate_db_error(exc: Exception) -> DatabaseError:
    """Map a SQLAlchemy/driver exception onto the taxonomy"""
    if isinstance(exc, DatabaseError):
        return exc

    orig = getattr(exc, "orig", None) if isinstance(exc, DBAPIError) else None
    source = orig if orig is not None else exc
    code = getattr(source, "sqlstate", None) or getattr(source, "pgcode", None)
    message = str(source) or exc.__class__.__name__
    details = getattr(source, "detail", None)
    hint = getattr(source, "hint", None)

    if _is_timeout(code, message):
        return StatementTimeoutError(message, code=code, details=details, hint=hint)
    if isinstance(exc, SQLAlchemyError):
        return DatabaseError(message, code=code, details=details, hint=hint)
    return DatabaseError(message, code=code)


def user_message(exc: Exception) -> str:
    """Human-readable message for the dashboard"""
    if isinstance(exc, StatementTimeoutError):
        return "Request timed out. Try narrowing your search criteria."
    if isinstance(exc, SearchValidationError):
        return exc.message
    if isinstance(exc, DatabaseError) and exc.message:
        return exc.message
    return "Failed to fetch data. Please try again."


def sequence_search_message(exc: Exception, mode: str, sequence_length: int) -> str:
    """Message for a failed sequence search, with a hint for the search type"""
    if isinstance(exc, StatementTimeoutError):
        return 'Search timed out. Try a shorter sequence or use "Starts With" search type.'
    if mode == "partial" and sequence_length > 20:
        return 'Partial search with long sequences may timeout. Try "Starts With" or use a shorter sequence.'
    if isinstance(exc, DatabaseError) and exc.message:
        return exc.message
    return "Failed to search sequences. Please try again."
