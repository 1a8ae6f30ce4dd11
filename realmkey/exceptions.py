"""
RealmKey exceptions.

Exception Hierarchy:
- RealmKeyError (base)
  - ConfigurationError: inconsistent PasswordSpec or settings
  - UnsafeGenerationError: key requested without seed and without opt-in
  - DecryptionError: seed blob failed authentication or is malformed
  - GenerationExhaustedError: rejection sampling hit its retry guard

None of these are retried inside the engine: derivation is deterministic,
so the same inputs always produce the same error.
"""


class RealmKeyError(Exception):
    """Base exception for all realmkey errors."""


class ConfigurationError(RealmKeyError, ValueError):
    """Raised before any derivation work when a configuration cannot be satisfied."""


class UnsafeGenerationError(RealmKeyError):
    """Raised when a key is requested from a bare password without opt-in."""

    def __init__(self, message: str = (
        "refusing to derive a key without a seed; "
        "pass allow_without_seed=True to accept the weaker guarantee"
    )):
        super().__init__(message)


class DecryptionError(RealmKeyError):
    """Raised when an encrypted seed blob cannot be opened.

    Either the password is wrong or the blob is corrupted; the two cases
    are indistinguishable by design of authenticated encryption.
    """


class GenerationExhaustedError(RealmKeyError, RuntimeError):
    """Raised when a rejection-sampling loop exceeds its attempt guard.

    Attributes:
        attempts: Number of candidates drawn before giving up.
    """

    def __init__(self, what: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"no valid {what} found after {attempts} attempt(s)"
        )
