from __future__ import annotations

import json
import logging

from listing_bot.storage import CHAT_ID_ENTRIES, PersistentSet

LOGGER = logging.getLogger("test_storage")


def test_missing_file_loads_empty(tmp_path) -> None:
    store = PersistentSet(str(tmp_path / "symbols.json"), "symbols", LOGGER)
    assert store.load() == set()


def test_save_then_load_reconstructs_set(tmp_path) -> None:
    store = PersistentSet(str(tmp_path / "symbols.json"), "symbols", LOGGER)
    assert store.save({"ETH", "BTC", "SOL"})
    assert store.load() == {"BTC", "ETH", "SOL"}


def test_saved_file_is_a_sorted_json_array(tmp_path) -> None:
    path = tmp_path / "symbols.json"
    PersistentSet(str(path), "symbols", LOGGER).save({"ETH", "BTC"})
    assert json.loads(path.read_text(encoding="utf-8")) == ["BTC", "ETH"]


def test_resaving_loaded_content_keeps_it(tmp_path) -> None:
    path = tmp_path / "subscribers.json"
    path.write_text(json.dumps([42, -1001, 7]), encoding="utf-8")
    store = PersistentSet(str(path), "subscribers", LOGGER, CHAT_ID_ENTRIES)

    loaded = store.load()
    store.save(loaded)

    assert store.load() == {42, -1001, 7}


def test_malformed_json_loads_empty(tmp_path) -> None:
    path = tmp_path / "symbols.json"
    path.write_text("[\"BTC\", ", encoding="utf-8")
    assert PersistentSet(str(path), "symbols", LOGGER).load() == set()


def test_wrong_shape_loads_empty(tmp_path) -> None:
    path = tmp_path / "symbols.json"
    path.write_text(json.dumps({"symbols": ["BTC"]}), encoding="utf-8")
    assert PersistentSet(str(path), "symbols", LOGGER).load() == set()

    path.write_text(json.dumps(["BTC", ["nested"]]), encoding="utf-8")
    assert PersistentSet(str(path), "symbols", LOGGER).load() == set()


def test_save_creates_parent_dirs_and_leaves_no_temp_files(tmp_path) -> None:
    path = tmp_path / "data" / "state" / "symbols.json"
    store = PersistentSet(str(path), "symbols", LOGGER)

    assert store.save({"BTC"})

    assert [entry.name for entry in path.parent.iterdir()] == ["symbols.json"]


def test_failed_save_returns_false_and_keeps_previous_content(tmp_path) -> None:
    path = tmp_path / "symbols.json"
    store = PersistentSet(str(path), "symbols", LOGGER)
    store.save({"BTC"})

    assert store.save({"ETH", object()}) is False

    assert store.load() == {"BTC"}
    assert [entry.name for entry in tmp_path.iterdir()] == ["symbols.json"]


def test_save_to_directory_path_fails_softly(tmp_path) -> None:
    target = tmp_path / "occupied"
    target.mkdir()
    store = PersistentSet(str(target), "symbols", LOGGER)

    assert store.save({"BTC"}) is False


def test_symbol_store_rejects_non_string_entries(tmp_path) -> None:
    path = tmp_path / "symbols.json"
    path.write_text(json.dumps(["BTC", 1]), encoding="utf-8")
    assert PersistentSet(str(path), "symbols", LOGGER).load() == set()


def test_chat_id_store_accepts_ints_but_not_bools(tmp_path) -> None:
    path = tmp_path / "subscribers.json"
    path.write_text(json.dumps([42, "@channel"]), encoding="utf-8")
    assert PersistentSet(str(path), "subscribers", LOGGER, CHAT_ID_ENTRIES).load() == {42, "@channel"}

    path.write_text(json.dumps([42, True]), encoding="utf-8")
    assert PersistentSet(str(path), "subscribers", LOGGER, CHAT_ID_ENTRIES).load() == set()
