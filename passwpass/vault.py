"""
In-memory vault session.

A VaultSession owns the working copy of the records and category labels
for one process. Every mutation builds the new state, persists it, and
only then replaces the in-memory state, so a failed save leaves both the
session and the files as they were.
"""

import datetime
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from . import analyzer
from . import config
from .storage import CredentialRecord, CategoryStore, LoadResult, SaveResult, VaultStore

logger = logging.getLogger(__name__)

_UNSET = object()


class VaultSession:
    """Working copy of the vault plus the stores that persist it."""

    def __init__(self, vault_store: VaultStore, category_store: CategoryStore,
                 records: Optional[List[CredentialRecord]] = None,
                 categories: Optional[List[str]] = None):
        self.vault_store = vault_store
        self.category_store = category_store
        self._records: List[CredentialRecord] = list(records or [])
        self._categories: List[str] = list(categories or [])
        self.vault_load: LoadResult = LoadResult(records=list(self._records))
        self.categories_load: LoadResult = LoadResult(records=list(self._categories))

    @classmethod
    def open(cls, vault_store: VaultStore, category_store: CategoryStore) -> 'VaultSession':
        """Load both files. Failures leave the session empty; see vault_load / categories_load."""
        vault_load = vault_store.load_result()
        categories_load = category_store.load_result()
        session = cls(vault_store, category_store, vault_load.records, categories_load.records)
        session.vault_load = vault_load
        session.categories_load = categories_load
        if vault_load.corrupt:
            logger.error("Vault could not be read; the session starts empty and the next save will replace the file.")
        return session

    # Read access

    @property
    def records(self) -> List[CredentialRecord]:
        return list(self._records)

    @property
    def categories(self) -> List[str]:
        return list(self._categories)

    def get_record(self, record_id: str) -> CredentialRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise KeyError(f"No record with id {record_id}")

    def records_in_category(self, name: str) -> List[CredentialRecord]:
        return [r for r in self._records if r.category == name]

    def uncategorized_records(self) -> List[CredentialRecord]:
        return [r for r in self._records if not r.category]

    def category_counts(self) -> Dict[str, int]:
        """Number of records per category, in category order."""
        return {name: len(self.records_in_category(name)) for name in self._categories}

    def analyze(self) -> List[analyzer.Finding]:
        return analyzer.analyze(self._records)

    # Record mutations

    def add_record(self, record: CredentialRecord) -> SaveResult:
        """Append a record, creating its category on the fly if it is new."""
        _require_site(record.site)
        if any(r.id == record.id for r in self._records):
            raise ValueError(f"A record with id {record.id} already exists")
        categories = self._categories
        if record.category:
            record = replace(record, category=_clean_category(record.category))
            if record.category not in categories:
                categories = categories + [record.category]
        return self._commit(self._records + [record], categories)

    def update_record(self, record_id: str, site: Optional[str] = None, username: Optional[str] = None,
                      password: Optional[str] = None, category=_UNSET) -> SaveResult:
        """Change fields of one record. Pass category=None to uncategorize it."""
        current = self.get_record(record_id)
        changes = {}
        if site is not None:
            _require_site(site)
            changes['site'] = site
        if username is not None:
            changes['username'] = username
        if password is not None:
            changes['password'] = password

        categories = self._categories
        if category is not _UNSET:
            changes['category'] = _clean_category(category) if category else None
            if changes['category'] and changes['category'] not in categories:
                categories = categories + [changes['category']]

        updated = replace(current, **changes)
        records = [updated if r.id == record_id else r for r in self._records]
        return self._commit(records, categories)

    def set_record_category(self, record_id: str, category: Optional[str]) -> SaveResult:
        return self.update_record(record_id, category=category)

    def delete_record(self, record_id: str) -> SaveResult:
        self.get_record(record_id)
        return self._commit([r for r in self._records if r.id != record_id], self._categories)

    # Category mutations

    def add_category(self, name: str) -> SaveResult:
        name = _clean_category(name)
        if name in self._categories:
            raise ValueError(f'Category "{name}" already exists')
        return self._commit(self._records, self._categories + [name])

    def rename_category(self, old_name: str, new_name: str) -> SaveResult:
        """Rename a category and retag every record that referenced it."""
        if old_name not in self._categories:
            raise KeyError(f'No category named "{old_name}"')
        new_name = _clean_category(new_name)
        if new_name == old_name:
            return SaveResult(True)
        if new_name in self._categories:
            raise ValueError(f'Category "{new_name}" already exists')

        categories = [new_name if c == old_name else c for c in self._categories]
        records = [replace(r, category=new_name) if r.category == old_name else r for r in self._records]
        return self._commit(records, categories)

    def remove_category(self, name: str) -> SaveResult:
        """Delete a category. Records that used it become uncategorized; none are deleted."""
        if name not in self._categories:
            raise KeyError(f'No category named "{name}"')
        categories = [c for c in self._categories if c != name]
        records = [replace(r, category=None) if r.category == name else r for r in self._records]
        return self._commit(records, categories)

    # Backup

    def export_backup(self, filepath: Optional[str] = None) -> SaveResult:
        """Write an unencrypted JSON copy of every record."""
        if filepath is None:
            filepath = config.BACKUP_FILE_TEMPLATE.format(date=datetime.date.today().isoformat())
        return self.vault_store.export_plaintext(self._records, filepath)

    def _commit(self, records: List[CredentialRecord], categories: List[str]) -> SaveResult:
        """
        Persist records first, then categories. If the category write fails
        the previous vault is written back so both files stay consistent.
        """
        records_changed = records != self._records
        categories_changed = categories != self._categories

        if records_changed:
            result = self.vault_store.save(records)
            if not result:
                return result

        if categories_changed:
            result = self.category_store.save(categories)
            if not result:
                if records_changed and not self.vault_store.save(self._records):
                    logger.error("Could not restore the vault after a failed category save; "
                                 "records may reference categories that are not listed.")
                return result

        self._records = list(records)
        self._categories = list(categories)
        return SaveResult(True)


def _require_site(site: str) -> None:
    if not (site or "").strip():
        raise ValueError("Site cannot be empty")


def _clean_category(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Category name cannot be empty")
    return name
