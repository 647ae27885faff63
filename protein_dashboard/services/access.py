from loguru import logger

from protein_dashboard.services.errors import DatabaseError, SearchValidationError

ACCESS_CODE_LENGTH = 6


def validate_code_format(code) -> str:
    """Return the trimmed code or raise SearchValidationError"""
    trimmed = (code or "").strip()
    if not trimmed:
        raise SearchValidationError("Please enter an access code", field="code")
    if len(trimmed) != ACCESS_CODE_LENGTH:
        raise SearchValidationError(
            f"Access code must be exactly {ACCESS_CODE_LENGTH} digits", field="code"
        )
    if not trimmed.isascii() or not trimmed.isdigit():
        raise SearchValidationError("Access code must contain only numbers", field="code")
    return trimmed


class AccessGate:
    def __init__(self, repository):
        self.repository = repository

    async def verify(self, code: str) -> bool:
        """True if the code is well-formed and present in the codes table"""
        trimmed = validate_code_format(code)
        try:
            return await self.repository.code_exists(trimmed)
        except DatabaseError as e:
            logger.error(f"Access code validation failed: {e.message}")
            return False
