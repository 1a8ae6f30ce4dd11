"""
Encrypted Seed — random seed generation and password-based wrapping.

Blob format:
    [magic "RKS" 3B][version 1B][log2(N) 1B][r 1B][p 1B]
    [salt 16B][nonce 12B][ciphertext + GCM tag 16B]

The 7-byte header carries the scrypt cost used for wrapping and is bound
to the ciphertext as associated data, so altering it fails authentication.

Security Note:
    Never log seed bytes or passwords. Only log sizes.
    Every call to ``encrypt_seed`` uses a fresh salt and nonce.
"""
import os
import struct
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..exceptions import DecryptionError
from .config import (
    DEFAULT_SETTINGS,
    MAX_SCRYPT_COST,
    MAX_SCRYPT_P,
    MAX_SCRYPT_R,
    EngineSettings,
    scrypt_cost,
)

logger = logging.getLogger("realmkey.seed")

SEED_SIZE = 256
SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

MAGIC = b"RKS"
VERSION = 1
_HEADER = struct.Struct("!3sBBBB")
HEADER_SIZE = _HEADER.size

# Bounds accepted when opening a blob; a forged header must not be able
# to request an arbitrarily expensive scrypt run.
_MIN_LOG2_N = 10
_MAX_LOG2_N = 22


def _wrap_key(password: str, salt: bytes, n: int, r: int, p: int) -> bytes:
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=n, r=r, p=p)
    return kdf.derive(password.encode("utf-8"))


def generate_seed() -> bytes:
    """Return ``SEED_SIZE`` fresh random bytes."""
    return os.urandom(SEED_SIZE)


def encrypt_seed(
    seed: bytes,
    password: str,
    settings: Optional[EngineSettings] = None,
) -> bytes:
    """Wrap seed bytes under a key derived from ``password``.

    Args:
        seed: Raw seed bytes.
        password: Master password.
        settings: Engine settings providing the scrypt cost.

    Returns:
        Self-contained encrypted seed blob.
    """
    settings = settings or DEFAULT_SETTINGS
    log2_n = settings.scrypt_n.bit_length() - 1
    header = _HEADER.pack(MAGIC, VERSION, log2_n, settings.scrypt_r, settings.scrypt_p)
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = _wrap_key(password, salt, settings.scrypt_n, settings.scrypt_r, settings.scrypt_p)
    ct = AESGCM(key).encrypt(nonce, seed, header)
    return header + salt + nonce + ct


def generate_encrypted_seed(
    password: str,
    settings: Optional[EngineSettings] = None,
) -> bytes:
    """Create a fresh random seed and return it encrypted under ``password``.

    Two calls with the same password return different blobs.

    Args:
        password: Master password.
        settings: Engine settings providing the scrypt cost.

    Returns:
        Encrypted seed blob, ready to be persisted by the caller.
    """
    blob = encrypt_seed(generate_seed(), password, settings)
    logger.debug("Encrypted seed generated: blob_size=%d", len(blob))
    return blob


def open_seed(password: str, blob: bytes) -> bytes:
    """Decrypt an encrypted seed blob.

    The scrypt cost is read from the blob header, so blobs stay readable
    regardless of the current settings.

    Args:
        password: Master password the blob was created with.
        blob: Encrypted seed blob from ``generate_encrypted_seed``.

    Returns:
        Decrypted seed bytes.

    Raises:
        DecryptionError: If the blob is malformed, the password is wrong
            or the ciphertext was tampered with.
    """
    blob = bytes(blob)
    _min = HEADER_SIZE + SALT_SIZE + NONCE_SIZE + TAG_SIZE
    if len(blob) < _min:
        raise DecryptionError(
            f"seed blob too short: {len(blob)} bytes (minimum {_min})"
        )
    header = blob[:HEADER_SIZE]
    magic, version, log2_n, r, p = _HEADER.unpack(header)
    if magic != MAGIC:
        raise DecryptionError("not a realmkey seed blob")
    if version != VERSION:
        raise DecryptionError(f"unsupported seed blob version {version}")
    if not _MIN_LOG2_N <= log2_n <= _MAX_LOG2_N or r == 0 or p == 0:
        raise DecryptionError("seed blob carries invalid scrypt parameters")
    if r > MAX_SCRYPT_R or p > MAX_SCRYPT_P or \
            scrypt_cost(1 << log2_n, r, p) > MAX_SCRYPT_COST:
        raise DecryptionError(
            f"seed blob requests an excessive scrypt cost (log2N={log2_n}, r={r}, p={p})"
        )

    offset = HEADER_SIZE
    salt = blob[offset:offset + SALT_SIZE]
    offset += SALT_SIZE
    nonce = blob[offset:offset + NONCE_SIZE]
    ct = blob[offset + NONCE_SIZE:]

    key = _wrap_key(password, salt, 1 << log2_n, r, p)
    try:
        seed = AESGCM(key).decrypt(nonce, ct, header)
    except InvalidTag as err:
        raise DecryptionError(
            "unable to open seed: wrong password or corrupted blob"
        ) from err
    logger.debug("Encrypted seed opened: seed_size=%d", len(seed))
    return seed
