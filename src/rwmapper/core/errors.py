"""Exceptions for programming errors; log content never raises."""


class RwMapperError(Exception):
    """Base error for the mapper."""


class SessionFinalizedError(RwMapperError):
    """Raised when lines are fed into a session that was already finalized."""
