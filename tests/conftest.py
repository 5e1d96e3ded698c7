# tests/conftest.py

import pytest

from passwpass import vault_manager
from passwpass.crypto import CryptoManager
from passwpass.storage import CategoryStore, CredentialRecord, VaultStore


@pytest.fixture
def fast_crypto():
    """PBKDF2 with a token iteration count so tests stay quick."""
    return CryptoManager(pbkdf2_iterations=1000, use_argon2=False)


@pytest.fixture
def vault_store(tmp_path, fast_crypto):
    return VaultStore(str(tmp_path / "data" / "passwords.json"), "test-secret", fast_crypto)


@pytest.fixture
def category_store(tmp_path):
    return CategoryStore(str(tmp_path / "data" / "categories.json"))


@pytest.fixture
def sample_records():
    return [
        CredentialRecord(site="GitHub", username="alice", password="Gh!tHub2024x", category="Work"),
        CredentialRecord(site="github", username="alice.alt", password="password"),
        CredentialRecord(site="Bank", username="alice", password="password", category="Finance"),
        CredentialRecord(site="Mail", username="  ", password="M@ilB0x!!"),
    ]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point the default stores at a temporary directory and forget cached stores."""
    monkeypatch.setenv("PASSWPASS_DATA_DIR", str(tmp_path / "default"))
    monkeypatch.delenv("PASSWPASS_SECRET_KEY", raising=False)
    monkeypatch.delenv("PASSWPASS_REQUIRE_SECRET_KEY", raising=False)
    vault_manager.reset_stores()
    yield
    vault_manager.reset_stores()
