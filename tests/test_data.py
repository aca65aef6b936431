import json
from unittest.mock import patch

from data import JsonFileStore, load_json_data, save_json_data


def test_missing_file_loads_empty(tmp_path):
    assert load_json_data(tmp_path / "missing.json") == {}


def test_non_object_json_loads_empty(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    assert load_json_data(path) == {}


def test_save_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "store.json"
    assert save_json_data({"a": 1}, path)
    assert json.loads(path.read_text()) == {"a": 1}


def test_save_failure_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    assert not save_json_data({"a": 1}, blocker / "store.json")


def test_store_operations(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)

    store.put("aa:bb", {"last_seen": 1})
    store.put("cc:dd", {"last_seen": 2})
    store.delete("aa:bb")
    store.delete("never-added")

    assert store.get("aa:bb") is None
    assert store.get("cc:dd") == {"last_seen": 2}
    assert store.list_keys() == {"cc:dd"}
    assert JsonFileStore(path).list_keys() == {"cc:dd"}


def test_store_keeps_working_in_memory_when_disk_fails(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonFileStore(blocker / "store.json")

    store.put("aa:bb", {"last_seen": 1})
    assert store.list_keys() == {"aa:bb"}


def test_reload_keeps_unsaved_changes(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonFileStore(blocker / "store.json")

    store.put("aa:bb", {"last_seen": 1})
    store.reload()

    assert store.dirty
    assert store.list_keys() == {"aa:bb"}


def test_reload_reads_disk_after_successful_save(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.put("aa:bb", {"last_seen": 1})
    path.write_text(json.dumps({"cc:dd": {"last_seen": 2}}))

    store.reload()

    assert not store.dirty
    assert store.list_keys() == {"cc:dd"}


def test_update_writes_once(tmp_path):
    store = JsonFileStore(tmp_path / "store.json")
    store.put("aa:bb", {"last_seen": 1})
    store.put("cc:dd", {"last_seen": 1})

    with patch("data.save_json_data", return_value=True) as save:
        store.update({"aa:bb": {"last_seen": 5}, "ee:ff": {"last_seen": 5}}, removed=["cc:dd"])

    save.assert_called_once()
    assert store.list_keys() == {"aa:bb", "ee:ff"}
    assert store.get("aa:bb") == {"last_seen": 5}
