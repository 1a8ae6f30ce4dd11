"""
Password Generator — deterministic passwords with per-class minimums.

Characters are drawn from the full alphabet (digits, ASCII punctuation,
upper and lower case letters) with excluded characters redrawn. A repair
pass then tops up any class below its minimum by replacing characters
that no other class needs, choosing positions from the same stream.
"""
import string
import logging
from typing import Optional

from pydantic import BaseModel, Field

from ..exceptions import ConfigurationError, GenerationExhaustedError
from .config import EngineSettings, DEFAULT_SETTINGS
from .seed import open_seed
from .stream import DeterministicStream, new_stream

logger = logging.getLogger("realmkey.password")

DIGITS = string.digits
SPECIALS = string.punctuation
UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
ALPHABET = DIGITS + SPECIALS + UPPERCASE + LOWERCASE


class PasswordSpec(BaseModel):
    """Password policy: total length and minimum count per character class."""

    length: int = Field(default=16, ge=1)
    digits: int = Field(default=3, ge=0)
    specials: int = Field(default=3, ge=0)
    uppercase: int = Field(default=2, ge=0)
    lowercase: int = Field(default=1, ge=0)
    excluded: str = ""

    model_config = {"frozen": True}

    def classes(self) -> list[tuple[str, str, int]]:
        """Return ``(name, characters, minimum)`` in repair order."""
        return [
            ("digits", DIGITS, self.digits),
            ("specials", SPECIALS, self.specials),
            ("uppercase", UPPERCASE, self.uppercase),
            ("lowercase", LOWERCASE, self.lowercase),
        ]

    def allowed(self, characters: str = ALPHABET) -> str:
        """Return ``characters`` minus the excluded ones."""
        return "".join(c for c in characters if c not in self.excluded)

    def check(self) -> None:
        """Validate that the policy can be satisfied.

        Raises:
            ConfigurationError: If the minimums exceed the length, a required
                class is entirely excluded, or no character is left at all.
        """
        required = self.digits + self.specials + self.uppercase + self.lowercase
        if required > self.length:
            raise ConfigurationError(
                f"class minimums add up to {required}, "
                f"more than the password length {self.length}"
            )
        for name, characters, minimum in self.classes():
            if minimum and not self.allowed(characters):
                raise ConfigurationError(
                    f"at least {minimum} {name} required but all are excluded"
                )
        if not self.allowed():
            raise ConfigurationError("every character is excluded")


def _draw_char(
    stream: DeterministicStream, pool: str, excluded: str, max_attempts: int,
) -> str:
    for _ in range(max_attempts):
        c = pool[stream.randbelow(len(pool))]
        if c not in excluded:
            return c
    raise GenerationExhaustedError("allowed character", max_attempts)


def generate_password(
    stream: DeterministicStream,
    spec: PasswordSpec,
    max_attempts: int = DEFAULT_SETTINGS.max_attempts,
) -> str:
    """Generate a password satisfying ``spec`` from an existing stream.

    Raises:
        ConfigurationError: If spec cannot be satisfied.
        GenerationExhaustedError: If drawing a character exceeds max_attempts.
    """
    spec.check()
    chars = [
        _draw_char(stream, ALPHABET, spec.excluded, max_attempts)
        for _ in range(spec.length)
    ]

    # Lock the first `minimum` occurrences of every class; anything left
    # unlocked is surplus and may be replaced.
    locked: set[int] = set()
    for _, characters, minimum in spec.classes():
        hits = [i for i, c in enumerate(chars) if c in characters]
        locked.update(hits[:minimum])

    repairs = 0
    for name, characters, minimum in spec.classes():
        count = sum(1 for c in chars if c in characters)
        while count < minimum:
            free = [i for i in range(spec.length) if i not in locked]
            if not free:
                raise ConfigurationError(
                    f"no position left to place required {name}"
                )
            pos = free[stream.randbelow(len(free))]
            chars[pos] = _draw_char(stream, characters, spec.excluded, max_attempts)
            locked.add(pos)
            count += 1
            repairs += 1

    logger.debug("Password generated: length=%d repairs=%d", spec.length, repairs)
    return "".join(chars)


def get_password(
    password: str,
    realm: str,
    seed_blob: Optional[bytes] = None,
    spec: Optional[PasswordSpec] = None,
    settings: Optional[EngineSettings] = None,
) -> str:
    """Derive a password for ``realm``.

    No seed gate is applied here; callers that want one enforce it.

    Args:
        password: Master password.
        realm: Context string, e.g. a domain name.
        seed_blob: Encrypted seed blob, or None.
        spec: Password policy; defaults when None.
        settings: Engine settings; defaults when None.

    Returns:
        Password string; identical inputs give identical passwords.

    Raises:
        ConfigurationError: If spec cannot be satisfied (checked first).
        DecryptionError: If seed_blob cannot be opened with password.
    """
    spec = spec or PasswordSpec()
    spec.check()
    settings = settings or DEFAULT_SETTINGS
    seed = open_seed(password, seed_blob) if seed_blob is not None else None
    stream = new_stream(password, realm, seed, settings)
    return generate_password(stream, spec, settings.max_attempts)
