"""Errors raised by the SigV4 signing engine."""


class SigningError(Exception):
    """Base class for every failure raised while producing a signature."""


class ConfigurationError(SigningError):
    """A required signing input is missing, empty or contradictory."""

    def __init__(self, message: str, fields: tuple[str, ...] = ()):
        self.fields = fields
        super().__init__(message)


class CryptoError(SigningError):
    """The hash/HMAC backend is unavailable or failed."""


class ClockError(SigningError):
    """The system clock could not be read."""
