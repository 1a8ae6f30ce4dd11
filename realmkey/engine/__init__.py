"""Derivation Engine — deterministic keys and passwords from password, realm and seed.

Security Note (Threat Model):
    Without a seed, every output is only as strong as the master password:
    anyone who guesses it can regenerate all keys offline. An encrypted
    seed kept apart from the password adds an independent secret, which is
    why key derivation without one requires an explicit opt-in.
"""

from .config import EngineSettings, load_master_password
from .stream import DeterministicStream, new_stream
from .seed import generate_encrypted_seed, open_seed
from .keys import DerivedKey, KeyFamily, KeyType, generate_key, get_key
from .password import PasswordSpec, generate_password, get_password
from .encoding import encode_to_der, encode_to_pem

__all__ = [
    "EngineSettings",
    "load_master_password",
    "DeterministicStream",
    "new_stream",
    "generate_encrypted_seed",
    "open_seed",
    "DerivedKey",
    "KeyFamily",
    "KeyType",
    "generate_key",
    "get_key",
    "PasswordSpec",
    "generate_password",
    "get_password",
    "encode_to_der",
    "encode_to_pem",
]
