"""
Deterministic Stream — reproducible pseudorandom bytes from password, realm and seed.

Derivation:
    PBKDF2-HMAC-SHA256(password, salt=realm) → stretched (32B)
    HKDF-SHA256(stretched || seed, info=[len(realm)|realm|seeded]) → stream key
    AES-256-CTR(stream key, counter=0) over zero bytes → keystream

The keystream is the stream: it can be read in any chunking and always
yields the same sequence for the same inputs.

Security Note:
    Never log password, realm or seed values.
"""
import struct
import logging
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import GenerationExhaustedError
from .config import EngineSettings, DEFAULT_SETTINGS

logger = logging.getLogger("realmkey.stream")

KEY_LENGTH = 32  # AES-256
COUNTER_BLOCK = bytes(16)
STREAM_SALT = b"realmkey-stream-v1"

_UNSEEDED = b"\x00"
_SEEDED = b"\x01"


def _stretch(password: str, realm: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=realm,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def derive_stream_key(
    password: str,
    realm: str,
    seed: Optional[bytes] = None,
    settings: Optional[EngineSettings] = None,
) -> bytes:
    """Derive the 32-byte key that drives the stream cipher.

    Args:
        password: Master password.
        realm: Context string, e.g. a domain name.
        seed: Decrypted seed bytes, or None for password-only derivation.
        settings: Engine settings; defaults when None.

    Returns:
        32-byte stream key.
    """
    settings = settings or DEFAULT_SETTINGS
    realm_bytes = realm.encode("utf-8")
    stretched = _stretch(password, realm_bytes, settings.pbkdf2_iterations)
    info = struct.pack("!I", len(realm_bytes)) + realm_bytes
    info += _SEEDED if seed is not None else _UNSEEDED
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=STREAM_SALT,
        info=info,
    )
    return hkdf.derive(stretched + (seed or b""))


class DeterministicStream:
    """Unbounded reproducible byte stream.

    Holds only its own cipher state; each instance moves forward on
    every read and is never shared between derivations.
    """

    def __init__(self, key: bytes, max_attempts: int = DEFAULT_SETTINGS.max_attempts):
        if len(key) != KEY_LENGTH:
            raise ValueError(f"stream key must be {KEY_LENGTH} bytes")
        cipher = Cipher(algorithms.AES(key), modes.CTR(COUNTER_BLOCK))
        self._encryptor = cipher.encryptor()
        self.max_attempts = max_attempts
        self.consumed = 0

    def next_bytes(self, n: int) -> bytes:
        """Return the next ``n`` bytes of the stream."""
        if n < 0:
            raise ValueError("byte count cannot be negative")
        self.consumed += n
        return self._encryptor.update(bytes(n))

    read = next_bytes

    def randbelow(self, bound: int) -> int:
        """Return an unbiased integer in ``[0, bound)``.

        Draws the smallest number of bytes covering ``bound``, masks the
        excess high bits and redraws out-of-range values.

        Raises:
            ValueError: If bound is not positive.
            GenerationExhaustedError: If max_attempts draws were rejected.
        """
        if bound <= 0:
            raise ValueError("bound must be positive")
        if bound == 1:
            return 0
        nbits = (bound - 1).bit_length()
        nbytes = (nbits + 7) // 8
        mask = (1 << nbits) - 1
        for _ in range(self.max_attempts):
            value = int.from_bytes(self.next_bytes(nbytes), "big") & mask
            if value < bound:
                return value
        raise GenerationExhaustedError(f"integer below {bound}", self.max_attempts)


def new_stream(
    password: str,
    realm: str,
    seed: Optional[bytes] = None,
    settings: Optional[EngineSettings] = None,
) -> DeterministicStream:
    """Create a fresh deterministic stream.

    Args:
        password: Master password.
        realm: Context string.
        seed: Decrypted seed bytes, or None.
        settings: Engine settings; defaults when None.

    Returns:
        A DeterministicStream positioned at its first byte.
    """
    settings = settings or DEFAULT_SETTINGS
    key = derive_stream_key(password, realm, seed, settings)
    logger.debug(
        "Stream created: realm_len=%d seeded=%s",
        len(realm), seed is not None,
    )
    return DeterministicStream(key, max_attempts=settings.max_attempts)
