import threading
from unittest.mock import MagicMock

from procdriver.cache import InspectionCache


def test_get_or_load_calls_loader_once_per_id():
    cache = InspectionCache()
    loader = MagicMock(side_effect=lambda cid: {"Id": cid})

    assert cache.get_or_load("a", loader) == {"Id": "a"}
    assert cache.get_or_load("a", loader) == {"Id": "a"}
    assert cache.get_or_load("b", loader) == {"Id": "b"}

    assert [c.args[0] for c in loader.call_args_list] == ["a", "b"]


def test_invalidate_is_per_id():
    cache = InspectionCache()
    cache.put("a", {})
    cache.put("b", {})

    cache.invalidate("a")
    cache.invalidate("missing")

    assert cache.get("a") is None
    assert cache.get("b") == {}
    assert len(cache) == 1


def test_clear_drops_everything():
    cache = InspectionCache()
    cache.put("a", {})
    cache.put("b", {})
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None


def test_loader_errors_leave_no_entry():
    cache = InspectionCache()

    def failing(_cid):
        raise RuntimeError("inspect failed")

    try:
        cache.get_or_load("a", failing)
    except RuntimeError:
        pass
    assert cache.get("a") is None


def test_concurrent_access_keeps_every_record():
    """
    Several threads filling and invalidating disjoint ids must not lose or
    corrupt each other's entries.
    """
    cache = InspectionCache()

    def worker(prefix: str) -> None:
        for i in range(200):
            cid = f"{prefix}-{i}"
            cache.get_or_load(cid, lambda c: {"Id": c})
            if i % 2:
                cache.invalidate(cid)

    threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 4 * 100
    assert cache.get("t0-0") == {"Id": "t0-0"}
    assert cache.get("t3-1") is None


def test_returned_records_are_copies():
    cache = InspectionCache()
    original = {"HostConfig": {"Privileged": True}}
    cache.put("a", original)
    original["HostConfig"]["Privileged"] = False

    record = cache.get("a")
    record["HostConfig"]["Privileged"] = False
    loaded = cache.get_or_load("a", MagicMock())
    loaded["HostConfig"]["Privileged"] = False

    assert cache.get("a") == {"HostConfig": {"Privileged": True}}


def test_loaded_record_is_not_shared_with_caller():
    cache = InspectionCache()
    record = cache.get_or_load("a", lambda cid: {"Id": cid})
    record["Id"] = "changed"
    assert cache.get("a") == {"Id": "a"}
