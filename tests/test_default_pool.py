import pytest

import weak_pool
from pooled_object import PooledObject


@pytest.fixture(autouse=True)
def fresh_default_pool(monkeypatch):
    monkeypatch.setattr(weak_pool, "_pool", weak_pool.WeakPool())


def test_module_functions_share_one_pool(box, collect):
    a, b = box("a"), box("b")
    weak_pool.add("k", a, "deco")
    weak_pool.add_pooled("k", PooledObject(b))

    assert weak_pool.get("k") == [PooledObject(a, "deco"), PooledObject(b)]
    assert weak_pool.objects_only("k") == [a, b]
    assert weak_pool.first_object("k") is a
    assert weak_pool.group_count() == 1
    assert weak_pool.live_entry_count() == weak_pool.size() == 2

    a = None
    collect()

    assert weak_pool.first_object("k") is b
    assert weak_pool.size() == 1
