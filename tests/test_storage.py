"""Tests for the persistence adapters -- JsonFileAdapter and MemoryAdapter.

All tests use real files in temporary directories.
No mocks, no stubs, no fakes.
"""

import json
from pathlib import Path

import pytest

from taskpad.errors import PersistenceError
from taskpad.storage.adapter import (
    DEFAULT_STORAGE_DIR,
    PREFS_FILE,
    JsonFileAdapter,
    MemoryAdapter,
    PersistenceAdapter,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def adapter(tmp_path: Path) -> JsonFileAdapter:
    """Return a JsonFileAdapter rooted in a fresh temp directory."""
    return JsonFileAdapter(str(tmp_path / ".taskpad"))


# ---------------------------------------------------------------------------
# JsonFileAdapter
# ---------------------------------------------------------------------------


class TestJsonFileAdapterLayout:
    def test_default_storage_dir_name(self) -> None:
        assert DEFAULT_STORAGE_DIR == ".taskpad"

    def test_is_a_persistence_adapter(self, adapter: JsonFileAdapter) -> None:
        assert isinstance(adapter, PersistenceAdapter)

    def test_storage_root_is_resolved(self, tmp_path: Path) -> None:
        adapter = JsonFileAdapter(str(tmp_path / "a" / ".." / "store"))
        assert adapter.storage_root == (tmp_path / "store").resolve()
        assert adapter.prefs_path == adapter.storage_root / PREFS_FILE

    def test_directory_created_on_first_write(self, tmp_path: Path) -> None:
        deep = tmp_path / "a" / "b" / ".taskpad"
        adapter = JsonFileAdapter(str(deep))
        adapter.set("tasks", ["x"])
        assert adapter.prefs_path.is_file()

    def test_default_root_is_cwd(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        adapter = JsonFileAdapter()
        assert adapter.storage_root == Path.cwd() / DEFAULT_STORAGE_DIR


class TestJsonFileAdapterGetSet:
    def test_absent_document_reads_as_none(self, adapter: JsonFileAdapter) -> None:
        assert adapter.get("tasks") is None

    def test_absent_key_reads_as_none(self, adapter: JsonFileAdapter) -> None:
        adapter.set("other", ["a"])
        assert adapter.get("tasks") is None

    def test_set_then_get(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", ["one", "two", "three"])
        assert adapter.get("tasks") == ["one", "two", "three"]

    def test_set_replaces_previous_value(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", ["one", "two"])
        adapter.set("tasks", ["three"])
        assert adapter.get("tasks") == ["three"]

    def test_empty_list_is_not_absent(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", [])
        assert adapter.get("tasks") == []

    def test_keys_are_independent(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", ["a"])
        adapter.set("archive", ["b"])
        assert adapter.get("tasks") == ["a"]
        assert adapter.get("archive") == ["b"]

    def test_document_layout(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", ['{"title":"A","isCompleted":false}'])
        data = json.loads(adapter.prefs_path.read_text(encoding="utf-8"))
        assert data == {"tasks": ['{"title":"A","isCompleted":false}']}

    def test_new_adapter_sees_written_data(self, tmp_path: Path) -> None:
        JsonFileAdapter(str(tmp_path)).set("tasks", ["persisted"])
        assert JsonFileAdapter(str(tmp_path)).get("tasks") == ["persisted"]

    def test_no_temp_files_left_behind(self, adapter: JsonFileAdapter) -> None:
        adapter.set("tasks", ["a"])
        adapter.set("tasks", ["b"])
        leftovers = [p.name for p in adapter.storage_root.iterdir() if p.name.startswith(".tmp_")]
        assert leftovers == []


class TestJsonFileAdapterCorruption:
    def test_corrupt_json_reads_as_none(self, adapter: JsonFileAdapter) -> None:
        adapter.storage_root.mkdir(parents=True)
        adapter.prefs_path.write_text("{not json", encoding="utf-8")
        assert adapter.get("tasks") is None

    def test_non_object_document_reads_as_none(self, adapter: JsonFileAdapter) -> None:
        adapter.storage_root.mkdir(parents=True)
        adapter.prefs_path.write_text('["tasks"]', encoding="utf-8")
        assert adapter.get("tasks") is None

    def test_non_list_value_reads_as_none(self, adapter: JsonFileAdapter) -> None:
        adapter.storage_root.mkdir(parents=True)
        adapter.prefs_path.write_text('{"tasks": "oops"}', encoding="utf-8")
        assert adapter.get("tasks") is None

    def test_list_items_are_returned_as_stored(self, adapter: JsonFileAdapter) -> None:
        adapter.storage_root.mkdir(parents=True)
        adapter.prefs_path.write_text('{"tasks": ["a", 1]}', encoding="utf-8")
        assert adapter.get("tasks") == ["a", 1]

    def test_set_over_corrupt_document_recovers(self, adapter: JsonFileAdapter) -> None:
        adapter.storage_root.mkdir(parents=True)
        adapter.prefs_path.write_text("{not json", encoding="utf-8")
        adapter.set("tasks", ["fresh"])
        assert adapter.get("tasks") == ["fresh"]

    def test_write_failure_raises_persistence_error(self, tmp_path: Path) -> None:
        # A regular file where the storage directory should be.
        blocker = tmp_path / "blocked"
        blocker.write_text("", encoding="utf-8")
        adapter = JsonFileAdapter(str(blocker / ".taskpad"))
        with pytest.raises(PersistenceError):
            adapter.set("tasks", ["a"])


# ---------------------------------------------------------------------------
# MemoryAdapter
# ---------------------------------------------------------------------------


class TestMemoryAdapter:
    def test_absent_key_reads_as_none(self) -> None:
        assert MemoryAdapter().get("tasks") is None

    def test_initial_values(self) -> None:
        adapter = MemoryAdapter({"tasks": ["a", "b"]})
        assert adapter.get("tasks") == ["a", "b"]

    def test_set_then_get(self) -> None:
        adapter = MemoryAdapter()
        adapter.set("tasks", ("a", "b"))
        assert adapter.get("tasks") == ["a", "b"]

    def test_get_returns_a_copy(self) -> None:
        adapter = MemoryAdapter({"tasks": ["a"]})
        adapter.get("tasks").append("b")
        assert adapter.get("tasks") == ["a"]

    def test_set_copies_input(self) -> None:
        adapter = MemoryAdapter()
        values = ["a"]
        adapter.set("tasks", values)
        values.append("b")
        assert adapter.get("tasks") == ["a"]
