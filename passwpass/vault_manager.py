"""
Process-wide vault access for the presentation layer.

The vault path, category path and passphrase are resolved once from
configuration; the functions below are the operations a front end calls.
"""

import os
import logging
from typing import List, Optional

from . import analyzer, config, generator, strength
from .crypto import CryptoManager
from .storage import CategoryStore, CredentialRecord, SaveResult, VaultStore
from .vault import VaultSession

logger = logging.getLogger(__name__)

_vault_store: Optional[VaultStore] = None
_category_store: Optional[CategoryStore] = None


def get_vault_path() -> str:
    return os.path.join(config.get_data_dir(), config.DEFAULT_VAULT_FILE)


def get_categories_path() -> str:
    return os.path.join(config.get_data_dir(), config.DEFAULT_CATEGORIES_FILE)


def get_vault_store() -> VaultStore:
    global _vault_store
    if _vault_store is None:
        _vault_store = VaultStore(get_vault_path(), config.get_secret_key(), CryptoManager())
    return _vault_store


def get_category_store() -> CategoryStore:
    global _category_store
    if _category_store is None:
        _category_store = CategoryStore(get_categories_path())
    return _category_store


def reset_stores() -> None:
    """Forget the cached stores so configuration is read again."""
    global _vault_store, _category_store
    _vault_store = None
    _category_store = None


def open_session() -> VaultSession:
    return VaultSession.open(get_vault_store(), get_category_store())


def load_vault() -> List[CredentialRecord]:
    return get_vault_store().load()


def save_vault(records: List[CredentialRecord]) -> SaveResult:
    return get_vault_store().save(records)


def load_categories() -> List[str]:
    return get_category_store().load()


def save_categories(categories: List[str]) -> SaveResult:
    return get_category_store().save(categories)


def analyze(records: List[CredentialRecord]) -> List[analyzer.Finding]:
    return analyzer.analyze(records)


def classify_strength(password: str) -> strength.StrengthTier:
    return strength.classify(password)


def generate_password(options: Optional[generator.GeneratorConfig] = None) -> str:
    return generator.generate_password(options)
