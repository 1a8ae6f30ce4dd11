"""
Key Generators — deterministic private keys drawn from a DeterministicStream.

One generator per key family, selected through ``_GENERATORS``:
- EC (P-256/P-384/P-521): rejection sampling of the scalar in [1, n-1]
- RSA (2048/4096): two stream-drawn primes, e = 65537
- X25519: 32 stream bytes; clamping is applied by the primitive
- Ed25519: 32 stream bytes used as the RFC 8032 seed

Every loop is bounded by ``max_attempts`` and consumes the stream in an
order that depends only on the stream itself, so the same password,
realm and seed always reproduce the same key.

Security Note:
    Never log key material. Only log key types and attempt counts.
"""
import enum
import math
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519

from ..exceptions import GenerationExhaustedError, UnsafeGenerationError
from .config import EngineSettings, DEFAULT_SETTINGS
from .seed import open_seed
from .stream import DeterministicStream, new_stream

logger = logging.getLogger("realmkey.keys")

RSA_PUBLIC_EXPONENT = 65537
X25519_KEY_SIZE = 32
ED25519_SEED_SIZE = 32


class KeyFamily(enum.Enum):
    EC = "ec"
    RSA = "rsa"
    X25519 = "x25519"
    ED25519 = "ed25519"


class KeyType(enum.Enum):
    """Supported key types; the value is the name accepted by ``parse``."""

    EC256 = "ec256"
    EC384 = "ec384"
    EC521 = "ec521"
    RSA2048 = "rsa2048"
    RSA4096 = "rsa4096"
    X25519 = "x25519"
    ED25519 = "ed25519"

    @property
    def family(self) -> KeyFamily:
        return _FAMILIES[self]

    @property
    def bits(self) -> int:
        return _BITS[self]

    @classmethod
    def parse(cls, name: str) -> "KeyType":
        """Resolve a key type from its name, e.g. ``"ec256"`` or ``"Ed25519"``."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(kt.value for kt in cls)
            raise ValueError(f"unknown key type {name!r} (valid: {valid})") from None

    def __str__(self) -> str:
        return self.value


_FAMILIES = {
    KeyType.EC256: KeyFamily.EC,
    KeyType.EC384: KeyFamily.EC,
    KeyType.EC521: KeyFamily.EC,
    KeyType.RSA2048: KeyFamily.RSA,
    KeyType.RSA4096: KeyFamily.RSA,
    KeyType.X25519: KeyFamily.X25519,
    KeyType.ED25519: KeyFamily.ED25519,
}

_BITS = {
    KeyType.EC256: 256,
    KeyType.EC384: 384,
    KeyType.EC521: 521,
    KeyType.RSA2048: 2048,
    KeyType.RSA4096: 4096,
    KeyType.X25519: 255,
    KeyType.ED25519: 255,
}

# Group orders of the NIST curves (FIPS 186-4, D.1.2).
_CURVES = {
    KeyType.EC256: (
        ec.SECP256R1,
        int(
            "FFFFFFFF00000000FFFFFFFFFFFFFFFF"
            "BCE6FAADA7179E84F3B9CAC2FC632551", 16,
        ),
    ),
    KeyType.EC384: (
        ec.SECP384R1,
        int(
            "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF"
            "FFFFFFFFFFFFFFFFC7634D81F4372DDF"
            "581A0DB248B0A77AECEC196ACCC52973", 16,
        ),
    ),
    KeyType.EC521: (
        ec.SECP521R1,
        int(
            "01FF"
            "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF"
            "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFA"
            "51868783BF2F966B7FCC0148F709A5D0"
            "3BB5C9B8899C47AEBB6FB71E91386409", 16,
        ),
    ),
}


@dataclass(frozen=True)
class DerivedKey:
    """A derived private key tagged with the type it was generated as."""

    key_type: KeyType
    private_key: Any

    @property
    def family(self) -> KeyFamily:
        return self.key_type.family

    def public_key(self) -> Any:
        return self.private_key.public_key()

    def raw_bytes(self) -> bytes:
        """Return the raw private value.

        The 32-byte scalar for X25519, the 32-byte seed for Ed25519 and the
        big-endian scalar for EC keys. RSA keys have no single raw value;
        use ``private_key.private_numbers()`` instead.

        Raises:
            TypeError: For RSA keys.
        """
        if self.family in (KeyFamily.X25519, KeyFamily.ED25519):
            return self.private_key.private_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PrivateFormat.Raw,
                encryption_algorithm=serialization.NoEncryption(),
            )
        if self.family is KeyFamily.EC:
            size = (self.private_key.curve.key_size + 7) // 8
            return self.private_key.private_numbers().private_value.to_bytes(size, "big")
        raise TypeError(f"{self.key_type} keys have no raw private encoding")


# ---------------------------------------------------------------------------
# Primality
# ---------------------------------------------------------------------------

def _small_primes(limit: int) -> list[int]:
    sieve = bytearray([1]) * (limit + 1)
    sieve[0:2] = b"\x00\x00"
    for i in range(2, math.isqrt(limit) + 1):
        if sieve[i]:
            sieve[i * i::i] = bytearray(len(sieve[i * i::i]))
    return [i for i, is_prime in enumerate(sieve) if is_prime]


SMALL_PRIMES = _small_primes(10_000)
_SMALL_PRIMES_PRODUCT = math.prod(SMALL_PRIMES)
# Fixed witnesses make the test deterministic; candidates come from a
# keyed stream, not an adversary.
MILLER_RABIN_WITNESSES = SMALL_PRIMES[:16]


def is_probable_prime(n: int) -> bool:
    """Deterministic Miller-Rabin test with fixed witnesses."""
    if n < 2:
        return False
    if n <= SMALL_PRIMES[-1]:
        return n in SMALL_PRIMES
    if math.gcd(n, _SMALL_PRIMES_PRODUCT) != 1:
        return False
    d, s = n - 1, 0
    while not d & 1:
        d >>= 1
        s += 1
    for a in MILLER_RABIN_WITNESSES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def _draw_prime(stream: DeterministicStream, bits: int, max_attempts: int) -> int:
    nbytes = (bits + 7) // 8
    excess = nbytes * 8 - bits
    for _ in range(max_attempts):
        candidate = int.from_bytes(stream.next_bytes(nbytes), "big") >> excess
        # Top two bits set so the product of two primes has exactly 2*bits bits.
        candidate |= (3 << (bits - 2)) | 1
        if math.gcd(RSA_PUBLIC_EXPONENT, candidate - 1) != 1:
            continue
        if is_probable_prime(candidate):
            return candidate
    raise GenerationExhaustedError(f"{bits}-bit prime", max_attempts)


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------

def _generate_ec(stream: DeterministicStream, key_type: KeyType, max_attempts: int):
    curve_cls, order = _CURVES[key_type]
    nbits = order.bit_length()
    nbytes = (nbits + 7) // 8
    mask = (1 << nbits) - 1
    for attempt in range(1, max_attempts + 1):
        scalar = int.from_bytes(stream.next_bytes(nbytes), "big") & mask
        if 1 <= scalar < order:
            logger.debug("EC scalar accepted: type=%s attempts=%d", key_type, attempt)
            return ec.derive_private_key(scalar, curve_cls())
    raise GenerationExhaustedError(f"{key_type} scalar", max_attempts)


def _generate_rsa(stream: DeterministicStream, key_type: KeyType, max_attempts: int):
    bits = key_type.bits
    e = RSA_PUBLIC_EXPONENT
    for attempt in range(1, max_attempts + 1):
        p = _draw_prime(stream, bits // 2, max_attempts)
        q = _draw_prime(stream, bits // 2, max_attempts)
        n = p * q
        if p == q or n.bit_length() != bits:
            continue
        d = pow(e, -1, (p - 1) * (q - 1))
        logger.debug("RSA primes accepted: type=%s attempts=%d", key_type, attempt)
        return rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=rsa.rsa_crt_dmp1(d, p),
            dmq1=rsa.rsa_crt_dmq1(d, q),
            iqmp=rsa.rsa_crt_iqmp(p, q),
            public_numbers=rsa.RSAPublicNumbers(e, n),
        ).private_key()
    raise GenerationExhaustedError(f"{key_type} prime pair", max_attempts)


def _generate_x25519(stream: DeterministicStream, key_type: KeyType, max_attempts: int):
    return x25519.X25519PrivateKey.from_private_bytes(stream.next_bytes(X25519_KEY_SIZE))


def _generate_ed25519(stream: DeterministicStream, key_type: KeyType, max_attempts: int):
    return ed25519.Ed25519PrivateKey.from_private_bytes(stream.next_bytes(ED25519_SEED_SIZE))


_GENERATORS: dict[KeyFamily, Callable[[DeterministicStream, KeyType, int], Any]] = {
    KeyFamily.EC: _generate_ec,
    KeyFamily.RSA: _generate_rsa,
    KeyFamily.X25519: _generate_x25519,
    KeyFamily.ED25519: _generate_ed25519,
}

if set(_GENERATORS) != set(KeyFamily):
    raise RuntimeError("every key family needs a generator")
if not set(_FAMILIES) == set(KeyType) == set(_BITS):
    raise RuntimeError("every key type needs a family and a bit size")


def generate_key(
    stream: DeterministicStream,
    key_type: KeyType,
    max_attempts: int = DEFAULT_SETTINGS.max_attempts,
) -> DerivedKey:
    """Generate a key of ``key_type`` from an existing stream.

    Args:
        stream: Stream to consume; it is advanced by the bytes drawn.
        key_type: Type of key to generate.
        max_attempts: Guard for every rejection-sampling loop.

    Returns:
        DerivedKey wrapping the generated private key.

    Raises:
        GenerationExhaustedError: If a sampling loop exceeds max_attempts.
    """
    generator = _GENERATORS[key_type.family]
    return DerivedKey(key_type, generator(stream, key_type, max_attempts))


def get_key(
    password: str,
    realm: str,
    seed_blob: Optional[bytes] = None,
    key_type: KeyType = KeyType.EC256,
    allow_without_seed: bool = False,
    settings: Optional[EngineSettings] = None,
) -> DerivedKey:
    """Derive a private key for ``realm``.

    When ``seed_blob`` is given the ``allow_without_seed`` flag is not
    consulted: the seed already provides the extra entropy the flag gates.

    Args:
        password: Master password.
        realm: Context string, e.g. a domain name.
        seed_blob: Encrypted seed blob, or None.
        key_type: Type of key to derive.
        allow_without_seed: Accept derivation from the password alone.
        settings: Engine settings; defaults when None.

    Returns:
        DerivedKey for the given inputs; identical inputs give identical keys.

    Raises:
        UnsafeGenerationError: If no seed is given and allow_without_seed is False.
        DecryptionError: If seed_blob cannot be opened with password.
        GenerationExhaustedError: If a sampling loop exceeds its guard.
    """
    if seed_blob is None and not allow_without_seed:
        raise UnsafeGenerationError()
    settings = settings or DEFAULT_SETTINGS
    if seed_blob is None:
        logger.warning("Deriving %s key without a seed", key_type)
        seed = None
    else:
        seed = open_seed(password, seed_blob)
    stream = new_stream(password, realm, seed, settings)
    key = generate_key(stream, key_type, settings.max_attempts)
    logger.debug("Key derived: type=%s consumed=%d", key_type, stream.consumed)
    return key
