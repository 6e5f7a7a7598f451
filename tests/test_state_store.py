from __future__ import annotations

import logging

from manaquiz.storage.state_store import StateStore


def test_save_and_load_round_trip(tmp_path):
    store = StateStore(tmp_path / "state")

    store.save("progress", {"attempts": [], "name": "Übung"})

    assert store.load("progress") == {"attempts": [], "name": "Übung"}
    assert store.path_for("progress") == (tmp_path / "state" / "progress.json").resolve()
    assert list(store.root.iterdir()) == [store.path_for("progress")]


def test_missing_key_loads_as_none(tmp_path):
    assert StateStore(tmp_path).load("absent") is None


def test_corrupt_file_is_ignored_with_warning(tmp_path, caplog):
    store = StateStore(tmp_path)
    store.path_for("exam").write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert store.load("exam") is None
    assert "Ignoring unreadable state file" in caplog.text


def test_save_overwrites_previous_document(tmp_path):
    store = StateStore(tmp_path)
    store.save("exam", {"version": 1})
    store.save("exam", {"version": 2})

    assert store.load("exam") == {"version": 2}
