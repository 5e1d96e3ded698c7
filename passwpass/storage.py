"""
Persistence for credential records and category labels.

The vault file holds one encrypted token whose plaintext is a JSON array of
record objects. The category file is a plaintext JSON array of strings.
Neither store raises to its caller from load()/save(): faults are logged
and reported through LoadResult / SaveResult.
"""

import os
import json
import uuid
import logging
import threading
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field, replace

from .crypto import CryptoManager
from .errors import StorageError, StorageNotFound, DecryptionError, SerializationError
from .utils import atomic_write_text

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class CredentialRecord:
    """Represents a single stored credential. Immutable; change it with dataclasses.replace."""
    site: str
    username: str
    password: str
    category: Optional[str] = None
    id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization. Uncategorized records omit 'category'."""
        data = {
            'id': self.id,
            'site': self.site,
            'username': self.username,
            'password': self.password,
        }
        if self.category:
            data['category'] = self.category
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CredentialRecord':
        """
        Create from dictionary.

        Missing text fields become empty strings and records written without
        an id receive a fresh one.
        """
        if not isinstance(data, dict):
            raise SerializationError(f"Record must be a JSON object, got {type(data).__name__}")
        category = data.get('category')
        return cls(
            site=_as_text(data.get('site')),
            username=_as_text(data.get('username')),
            password=_as_text(data.get('password')),
            category=str(category) if category else None,
            id=str(data.get('id') or new_record_id()),
        )


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _unique_ids(records: List[CredentialRecord]) -> List[CredentialRecord]:
    """Give a fresh id to every record whose id was already seen earlier in the list."""
    seen = set()
    unique = []
    for record in records:
        if record.id in seen:
            logger.warning(f"Duplicate record id {record.id} in vault; assigning a new id to the later copy.")
            record = replace(record, id=new_record_id())
        seen.add(record.id)
        unique.append(record)
    return unique


@dataclass
class LoadResult:
    """Outcome of a load: the records plus the fault that emptied them, if any."""
    records: List[Any] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def not_found(self) -> bool:
        return isinstance(self.error, StorageNotFound)

    @property
    def corrupt(self) -> bool:
        return isinstance(self.error, (DecryptionError, SerializationError))


@dataclass
class SaveResult:
    """Outcome of a save. Truthy on success."""
    ok: bool
    error: Optional[Exception] = None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def reason(self) -> str:
        return "" if self.error is None else str(self.error)


class VaultStore:
    """Manages the encrypted vault file."""

    def __init__(self, filepath: str, secret_key: str, crypto: Optional[CryptoManager] = None):
        """
        Initialize the vault store.
        Args:
            filepath: Path to the encrypted vault file
            secret_key: Passphrase the vault is sealed with
            crypto: Codec to use; a default CryptoManager if omitted
        """
        self.filepath = filepath
        self._secret_key = secret_key
        self.crypto = crypto or CryptoManager()
        self._lock = threading.Lock()

    def exists(self) -> bool:
        return os.path.exists(self.filepath)

    def read(self) -> List[CredentialRecord]:
        """
        Read and decrypt the vault.

        Returns:
            The stored records, in file order

        Raises:
            StorageNotFound: The vault file does not exist
            DecryptionError: The token is malformed or the passphrase is wrong
            SerializationError: The plaintext is not a JSON array of records
            OSError: The file could not be read
        """
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                token = f.read()
        except FileNotFoundError as e:
            raise StorageNotFound(f"No vault at {self.filepath}") from e

        if not token.strip():
            return []

        data = self.crypto.decrypt_json(token, self._secret_key)
        if not isinstance(data, list):
            raise SerializationError(f"Vault must hold a JSON array, got {type(data).__name__}")
        return _unique_ids([CredentialRecord.from_dict(item) for item in data])

    def load_result(self) -> LoadResult:
        """
        Load the vault without raising.

        A missing file is a normal first run. Decryption and parse failures
        are logged as errors and reported in LoadResult.error so callers
        can warn the user before overwriting anything.
        """
        with self._lock:
            try:
                return LoadResult(records=self.read())
            except StorageNotFound as e:
                logger.info(f"Vault file {self.filepath} does not exist yet; starting empty.")
                return LoadResult(error=e)
            except (DecryptionError, SerializationError) as e:
                logger.error(f"Vault file {self.filepath} could not be decrypted or parsed: {e}. "
                             f"Saving now would overwrite it.")
                return LoadResult(error=e)
            except (OSError, UnicodeError) as e:
                logger.error(f"Error reading vault file {self.filepath}: {e}", exc_info=True)
                return LoadResult(error=e)

    def load(self) -> List[CredentialRecord]:
        """Load the vault, returning an empty list on any failure."""
        return self.load_result().records

    def save(self, records: List[CredentialRecord]) -> SaveResult:
        """
        Encrypt and write the full record list, replacing the previous file
        atomically. Concurrent calls are serialized.
        """
        with self._lock:
            try:
                token = self.crypto.encrypt_json([r.to_dict() for r in records], self._secret_key)
                atomic_write_text(self.filepath, token, private=True)
            except (OSError, ValueError, TypeError, StorageError) as e:
                logger.error(f"Error saving vault file {self.filepath}: {e}", exc_info=True)
                return SaveResult(False, e)
            logger.debug(f"Saved {len(records)} records to {self.filepath}")
            return SaveResult(True)

    def export_plaintext(self, records: List[CredentialRecord], filepath: str) -> SaveResult:
        """Write records as indented, unencrypted JSON (a user backup)."""
        try:
            atomic_write_text(filepath, json.dumps([r.to_dict() for r in records], indent=2), private=True)
        except (OSError, TypeError) as e:
            logger.error(f"Error creating backup {filepath}: {e}", exc_info=True)
            return SaveResult(False, e)
        logger.info(f"Backup of {len(records)} records written to {filepath}")
        return SaveResult(True)


class CategoryStore:
    """Manages the plaintext category list."""

    def __init__(self, filepath: str):
        self.filepath = filepath
        self._lock = threading.Lock()

    def read(self) -> List[str]:
        """
        Read the category list.

        Raises:
            StorageNotFound: The category file does not exist
            SerializationError: The file is not a JSON array of strings
            OSError: The file could not be read
        """
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError as e:
            raise StorageNotFound(f"No category file at {self.filepath}") from e
        if not text.strip():
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Category file is not valid JSON: {e}") from e
        if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
            raise SerializationError("Category file must hold a JSON array of strings")

        categories = []
        for name in data:
            if name not in categories:
                categories.append(name)
        return categories

    def load_result(self) -> LoadResult:
        with self._lock:
            try:
                return LoadResult(records=self.read())
            except StorageNotFound as e:
                return LoadResult(error=e)
            except SerializationError as e:
                logger.error(f"Category file {self.filepath} is invalid: {e}")
                return LoadResult(error=e)
            except (OSError, UnicodeError) as e:
                logger.error(f"Error reading category file {self.filepath}: {e}", exc_info=True)
                return LoadResult(error=e)

    def load(self) -> List[str]:
        return self.load_result().records

    def save(self, categories: List[str]) -> SaveResult:
        with self._lock:
            try:
                atomic_write_text(self.filepath, json.dumps(list(categories), indent=2))
            except (OSError, TypeError) as e:
                logger.error(f"Error saving categories to {self.filepath}: {e}", exc_info=True)
                return SaveResult(False, e)
            return SaveResult(True)
