import pytest

from realmkey import EngineSettings, generate_encrypted_seed


@pytest.fixture(scope="session")
def fast_settings():
    """Settings with the cheapest accepted scrypt cost."""
    return EngineSettings(scrypt_n=2 ** 10)


@pytest.fixture(scope="session")
def seed_blob(fast_settings):
    """Encrypted seed for master password 'pass1'."""
    return generate_encrypted_seed("pass1", fast_settings)


@pytest.fixture(scope="session")
def other_seed_blob(fast_settings):
    """A second, independent encrypted seed for 'pass1'."""
    return generate_encrypted_seed("pass1", fast_settings)
