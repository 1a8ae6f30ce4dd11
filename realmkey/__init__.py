"""RealmKey - reproducible private keys and passwords.

Derives the same key or password for a realm every time from a master
password and an optional encrypted seed, so nothing has to be stored.
"""

from realmkey.engine import (
    DerivedKey,
    DeterministicStream,
    EngineSettings,
    KeyFamily,
    KeyType,
    PasswordSpec,
    encode_to_der,
    encode_to_pem,
    generate_encrypted_seed,
    generate_key,
    generate_password,
    get_key,
    get_password,
    load_master_password,
    new_stream,
    open_seed,
)
from realmkey.exceptions import (
    ConfigurationError,
    DecryptionError,
    GenerationExhaustedError,
    RealmKeyError,
    UnsafeGenerationError,
)
from realmkey.version import __version__

__all__ = [
    "ConfigurationError",
    "DecryptionError",
    "DerivedKey",
    "DeterministicStream",
    "EngineSettings",
    "GenerationExhaustedError",
    "KeyFamily",
    "KeyType",
    "PasswordSpec",
    "RealmKeyError",
    "UnsafeGenerationError",
    "__version__",
    "encode_to_der",
    "encode_to_pem",
    "generate_encrypted_seed",
    "generate_key",
    "generate_password",
    "get_key",
    "get_password",
    "load_master_password",
    "new_stream",
    "open_seed",
]
