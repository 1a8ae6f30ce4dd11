"""
Engine Configuration — KDF cost parameters and master password lookup.

Reads optional overrides from environment variables:
    REALMKEY_PBKDF2_ITERATIONS = <integer>
    REALMKEY_SCRYPT_N = <power of two>
    REALMKEY_MAX_ATTEMPTS = <integer>

Changing ``pbkdf2_iterations`` changes every derived key and password.
Scrypt parameters only affect newly generated seed blobs; existing blobs
record the parameters they were created with.

Security Note:
    Never log the master password. Only log whether it was found.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("realmkey.config")

DEFAULT_PBKDF2_ITERATIONS = 4096
DEFAULT_SCRYPT_N = 2 ** 15
DEFAULT_SCRYPT_R = 8
DEFAULT_SCRYPT_P = 1
DEFAULT_MAX_ATTEMPTS = 100_000

MAX_SCRYPT_R = 32
MAX_SCRYPT_P = 16
# Upper bound on 128 * N * r * p, the bytes scrypt mixes across all lanes.
MAX_SCRYPT_COST = 2 ** 30

MASTER_PASSWORD_ENV = "REALMKEY_MASTER"


def scrypt_cost(n: int, r: int, p: int) -> int:
    """Return the scrypt work bound 128 * N * r * p for the given parameters."""
    return 128 * n * r * p


def load_master_password(env_var: str = MASTER_PASSWORD_ENV) -> str:
    """Read the master password from the environment.

    Intended for the caller layer; the derivation engine never reads the
    environment itself.

    Args:
        env_var: Name of the environment variable to read.

    Returns:
        The master password.

    Raises:
        RuntimeError: If the variable is not set or empty.
    """
    value = os.environ.get(env_var)
    if not value:
        raise RuntimeError(
            f"{env_var} environment variable is not set"
        )
    logger.debug("Master password loaded from %s", env_var)
    return value


class EngineSettings(BaseModel):
    """Validated derivation engine settings."""

    pbkdf2_iterations: int = Field(default=DEFAULT_PBKDF2_ITERATIONS, ge=1000)
    scrypt_n: int = Field(default=DEFAULT_SCRYPT_N, ge=2 ** 10, le=2 ** 22)
    scrypt_r: int = Field(default=DEFAULT_SCRYPT_R, ge=1, le=MAX_SCRYPT_R)
    scrypt_p: int = Field(default=DEFAULT_SCRYPT_P, ge=1, le=MAX_SCRYPT_P)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)

    model_config = {"frozen": True}

    @field_validator("scrypt_n")
    @classmethod
    def validate_scrypt_n(cls, v: int) -> int:
        """Scrypt requires N to be a power of two."""
        if v & (v - 1):
            raise ValueError(f"scrypt_n must be a power of two, got {v}")
        return v

    @model_validator(mode="after")
    def validate_scrypt_cost(self) -> "EngineSettings":
        """Keep the scrypt cost within what open_seed accepts."""
        cost = scrypt_cost(self.scrypt_n, self.scrypt_r, self.scrypt_p)
        if cost > MAX_SCRYPT_COST:
            raise ValueError(
                f"scrypt cost 128*N*r*p = {cost} exceeds {MAX_SCRYPT_COST}"
            )
        return self

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Create EngineSettings from REALMKEY_* environment variables.

        Unset variables fall back to the defaults.

        Returns:
            Populated EngineSettings instance.
        """
        overrides = {}
        for field, env_var in (
            ("pbkdf2_iterations", "REALMKEY_PBKDF2_ITERATIONS"),
            ("scrypt_n", "REALMKEY_SCRYPT_N"),
            ("max_attempts", "REALMKEY_MAX_ATTEMPTS"),
        ):
            raw = os.environ.get(env_var)
            if raw is not None:
                overrides[field] = int(raw)
        return cls(**overrides)


DEFAULT_SETTINGS = EngineSettings()
