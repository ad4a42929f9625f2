import json

from storefront.core.reactive import Computed, Signal
from storefront.core.storage import LocalStorage


def test_signal_notifies_only_on_change():
    cell = Signal(1)
    seen = []
    cell.subscribe(seen.append)
    cell.set(1)
    cell.set(2)
    cell.update(lambda v: v + 1)
    assert seen == [2, 3]


def test_unsubscribe_stops_notifications():
    cell = Signal("a")
    seen = []
    unsubscribe = cell.subscribe(seen.append)
    unsubscribe()
    cell.set("b")
    assert seen == []


def test_computed_notifies_once_per_effective_change():
    count = Signal(1)
    parity = Computed(lambda: count() % 2 == 0, count)
    seen = []
    parity.subscribe(seen.append)
    count.set(3)
    count.set(4)
    count.set(6)
    assert seen == [True]


def test_computed_is_lazy_without_subscribers():
    calls = []
    source = Signal(1)
    doubled = Computed(lambda: calls.append(1) or source() * 2, source)
    source.set(2)
    source.set(3)
    assert calls == []
    assert doubled() == 6
    assert len(calls) == 1


def test_storage_persists_across_instances(tmp_path):
    path = tmp_path / "state" / "storage.json"
    storage = LocalStorage(path)
    storage.set_items({"auth_token": "t", "current_user": "{}"})
    storage.remove_item("current_user")

    reopened = LocalStorage(path)
    assert reopened.keys() == ["auth_token"]
    assert json.loads(path.read_text()) == {"auth_token": "t"}


def test_unreadable_storage_file_starts_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    storage = LocalStorage(path)
    assert storage.keys() == []
    assert storage.get_items(["a"]) == {"a": None}


def test_memory_storage_writes_no_file(tmp_path):
    storage = LocalStorage()
    storage.set_item("k", "v")
    assert "k" in storage
    assert list(tmp_path.iterdir()) == []
