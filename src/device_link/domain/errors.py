"""Error taxonomy shared by services, adapters and the HTTP layer."""


class ValidationError(ValueError):
    """Raised when a required identifier or parameter is missing or malformed."""


class NotFoundError(LookupError):
    """Raised when an update-by-id operation finds no row."""


class TransientIOError(RuntimeError):
    """Raised when the backing store is unavailable or a write returns nothing."""
