# tests/test_storage.py

import json
import os
import dataclasses
import stat
import sys
import threading

import pytest

from passwpass.errors import DecryptionError, SerializationError, StorageNotFound
from passwpass.storage import CategoryStore, CredentialRecord, VaultStore


def test_missing_vault_loads_empty(vault_store):
    """
    A vault that was never written is the first-run case, not an error.
    """
    assert vault_store.load() == []
    result = vault_store.load_result()
    assert result.records == []
    assert result.not_found
    assert not result.corrupt
    with pytest.raises(StorageNotFound):
        vault_store.read()


def test_save_then_load(vault_store, sample_records):
    result = vault_store.save(sample_records)

    assert result
    assert result.ok
    assert vault_store.load() == sample_records


def test_vault_file_is_encrypted(vault_store, sample_records):
    vault_store.save(sample_records)
    with open(vault_store.filepath, encoding="utf-8") as f:
        content = f.read()
    assert "GitHub" not in content
    assert "password" not in content


def test_plaintext_shape(vault_store, fast_crypto):
    """
    The decrypted vault is a JSON array of objects; uncategorized records
    carry no category key.
    """
    records = [
        CredentialRecord(site="A", username="u", password="p", category="Work", id="1"),
        CredentialRecord(site="B", username="v", password="q", id="2"),
    ]
    vault_store.save(records)
    with open(vault_store.filepath, encoding="utf-8") as f:
        data = fast_crypto.decrypt_json(f.read(), "test-secret")

    assert data == [
        {"id": "1", "site": "A", "username": "u", "password": "p", "category": "Work"},
        {"id": "2", "site": "B", "username": "v", "password": "q"},
    ]


def test_legacy_records_without_id(vault_store, fast_crypto):
    """
    Records written without an id (older vaults) get a fresh, distinct one.
    """
    legacy = [{"site": "A", "username": "u", "password": "p"}] * 2
    os.makedirs(os.path.dirname(vault_store.filepath), exist_ok=True)
    with open(vault_store.filepath, "w", encoding="utf-8") as f:
        f.write(fast_crypto.encrypt_json(legacy, "test-secret"))

    records = vault_store.load()
    assert [r.site for r in records] == ["A", "A"]
    assert records[0].id and records[1].id
    assert records[0].id != records[1].id
    assert records[0].category is None


def test_wrong_key_is_distinct_from_missing(tmp_path, vault_store, sample_records, fast_crypto, caplog):
    """
    A vault sealed with another passphrase degrades to empty but reports a
    DecryptionError, not StorageNotFound, and logs an error.
    """
    vault_store.save(sample_records)
    other = VaultStore(vault_store.filepath, "other-secret", fast_crypto)

    with caplog.at_level("ERROR"):
        result = other.load_result()

    assert result.records == []
    assert result.corrupt
    assert not result.not_found
    assert isinstance(result.error, (DecryptionError, SerializationError))
    assert "could not be decrypted" in caplog.text


def test_garbage_file_is_decryption_error(vault_store):
    os.makedirs(os.path.dirname(vault_store.filepath), exist_ok=True)
    with open(vault_store.filepath, "w", encoding="utf-8") as f:
        f.write("U2FsdGVkX1+garbage")

    result = vault_store.load_result()
    assert result.records == []
    assert isinstance(result.error, DecryptionError)


def test_non_array_payload_is_serialization_error(vault_store, fast_crypto):
    os.makedirs(os.path.dirname(vault_store.filepath), exist_ok=True)
    with open(vault_store.filepath, "w", encoding="utf-8") as f:
        f.write(fast_crypto.encrypt_json({"entries": []}, "test-secret"))

    result = vault_store.load_result()
    assert result.records == []
    assert isinstance(result.error, SerializationError)


def test_empty_file_loads_empty(vault_store):
    os.makedirs(os.path.dirname(vault_store.filepath), exist_ok=True)
    open(vault_store.filepath, "w").close()
    result = vault_store.load_result()
    assert result.ok
    assert result.records == []


def test_failed_save_keeps_previous_copy(vault_store, sample_records, monkeypatch):
    """
    A write failure is reported, not raised, and the previous vault survives.
    """
    vault_store.save(sample_records[:1])

    def broken_replace(src, dst):
        raise OSError("disk full")

    with monkeypatch.context() as m:
        m.setattr(os, "replace", broken_replace)
        result = vault_store.save(sample_records)

    assert not result
    assert "disk full" in result.reason
    assert vault_store.load() == sample_records[:1]
    leftovers = [n for n in os.listdir(os.path.dirname(vault_store.filepath)) if n.endswith(".tmp")]
    assert leftovers == []


def test_save_into_unwritable_location(tmp_path, fast_crypto, sample_records):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    store = VaultStore(str(blocker / "passwords.json"), "k", fast_crypto)
    result = store.save(sample_records)
    assert not result
    assert isinstance(result.error, OSError)


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_vault_file_is_owner_only(vault_store, sample_records):
    vault_store.save(sample_records)
    mode = stat.S_IMODE(os.stat(vault_store.filepath).st_mode)
    assert mode == 0o600


def test_export_plaintext(tmp_path, vault_store, sample_records):
    target = tmp_path / "backup.json"
    assert vault_store.export_plaintext(sample_records, str(target))
    data = json.loads(target.read_text(encoding="utf-8"))
    assert [d["site"] for d in data] == ["GitHub", "github", "Bank", "Mail"]


def test_categories_round_trip(category_store):
    assert category_store.load() == []
    assert category_store.save(["Work", "work", "Finance"])
    assert category_store.load() == ["Work", "work", "Finance"]
    with open(category_store.filepath, encoding="utf-8") as f:
        assert json.load(f) == ["Work", "work", "Finance"]


def test_categories_invalid_file(category_store):
    os.makedirs(os.path.dirname(category_store.filepath), exist_ok=True)
    with open(category_store.filepath, "w", encoding="utf-8") as f:
        f.write('{"not": "a list"}')
    result = category_store.load_result()
    assert result.records == []
    assert isinstance(result.error, SerializationError)


def test_categories_duplicates_collapsed(category_store):
    os.makedirs(os.path.dirname(category_store.filepath), exist_ok=True)
    with open(category_store.filepath, "w", encoding="utf-8") as f:
        json.dump(["Work", "Home", "Work"], f)
    assert category_store.load() == ["Work", "Home"]


def test_record_from_dict_coerces_fields():
    record = CredentialRecord.from_dict({"site": "A", "username": None, "category": ""})
    assert record.username == ""
    assert record.password == ""
    assert record.category is None
    with pytest.raises(SerializationError):
        CredentialRecord.from_dict(["not", "a", "dict"])


def test_records_are_immutable(sample_records):
    """
    Records cannot be edited in place; changes go through dataclasses.replace.
    """
    record = sample_records[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.password = "Changed!1"
    changed = dataclasses.replace(record, password="Changed!1")
    assert changed.id == record.id
    assert record.password == "Gh!tHub2024x"


def test_duplicate_ids_are_reassigned_on_load(vault_store, fast_crypto, caplog):
    """
    When the file holds two records with the same id, the later one gets a
    fresh id so every record stays addressable.
    """
    stored = [
        {"id": "same", "site": "A", "username": "u", "password": "p"},
        {"id": "same", "site": "B", "username": "v", "password": "q"},
        {"id": "other", "site": "C", "username": "w", "password": "r"},
    ]
    os.makedirs(os.path.dirname(vault_store.filepath), exist_ok=True)
    with open(vault_store.filepath, "w", encoding="utf-8") as f:
        f.write(fast_crypto.encrypt_json(stored, "test-secret"))

    with caplog.at_level("WARNING"):
        records = vault_store.load()

    assert [r.site for r in records] == ["A", "B", "C"]
    assert records[0].id == "same"
    assert records[2].id == "other"
    assert len({r.id for r in records}) == 3
    assert "Duplicate record id same" in caplog.text


def test_passphrase_with_lone_surrogate_is_reported(vault_store, sample_records, fast_crypto):
    """
    A passphrase that is not encodable text fails the load and the save
    through their results instead of raising.
    """
    vault_store.save(sample_records)
    store = VaultStore(vault_store.filepath, "key\udcff", fast_crypto)

    result = store.load_result()
    assert result.records == []
    assert result.corrupt
    assert isinstance(result.error, DecryptionError)

    saved = store.save(sample_records)
    assert not saved
    assert vault_store.load() == sample_records


def test_concurrent_saves_leave_one_complete_vault(vault_store):
    """
    Saves racing from several threads all succeed, the file ends up holding
    exactly one of the submitted lists, and no temp files are left behind.
    """
    submissions = [
        [CredentialRecord(site=f"site-{n}-{i}", username="u", password=f"pw{n}", id=f"{n}-{i}") for i in range(n + 1)]
        for n in range(8)
    ]
    results = [None] * len(submissions)
    start = threading.Barrier(len(submissions))

    def worker(index):
        start.wait()
        results[index] = vault_store.save(submissions[index])

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(len(submissions))]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(results)
    assert vault_store.load() in submissions
    leftovers = [n for n in os.listdir(os.path.dirname(vault_store.filepath)) if n.endswith(".tmp")]
    assert leftovers == []
