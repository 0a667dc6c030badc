import json

from scripts.migrate_store import migrate_store
from studyhall.core.kv_store import SqliteKeyValueStore
from studyhall.core.persistence import COURSES_KEY, SETTINGS_KEY


def test_unversioned_blobs_are_rewritten(tmp_path):
    path = str(tmp_path / "studyhall.db")
    store = SqliteKeyValueStore(path)
    store.set(SETTINGS_KEY, json.dumps({"theme": "sepia"}))
    store.set(COURSES_KEY, json.dumps([
        {"id": "c1", "title": "Topology", "modules": [{"id": "m1", "title": "Open sets"}]},
    ]))

    assert migrate_store(path) is True

    settings_blob = json.loads(store.get(SETTINGS_KEY))
    assert settings_blob["version"] == 1
    assert settings_blob["theme"] == "sepia"
    assert settings_blob["zoom"] == 100
    courses_blob = json.loads(store.get(COURSES_KEY))
    assert courses_blob["version"] == 1
    assert courses_blob["courses"][0]["level"] == "Masters"


def test_missing_store_fails(tmp_path):
    assert migrate_store(str(tmp_path / "absent.db")) is False


def test_unreadable_blob_fails_and_is_kept(tmp_path):
    path = str(tmp_path / "studyhall.db")
    store = SqliteKeyValueStore(path)
    store.set(COURSES_KEY, "][")

    assert migrate_store(path) is False
    assert store.get(COURSES_KEY) == "]["
