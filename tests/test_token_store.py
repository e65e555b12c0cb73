import json
import logging
import threading

import pytest

from tracktrivia.core.token_store import TokenStore
from tracktrivia.models.session import UserSession


def test_put_persists_and_reloads(store):
    store.put(UserSession(user_id="1", access_token="a1", refresh_token="r1"))
    store.put(UserSession(user_id="2", access_token="a2", refresh_token="r2"))

    reloaded = TokenStore(store.path)
    reloaded.load()

    assert reloaded.get("1") == UserSession("1", "a1", "r1")
    assert reloaded.get("2") == UserSession("2", "a2", "r2")
    assert len(reloaded) == 2


def test_file_layout(store):
    store.put(UserSession(user_id="1", access_token="a1", refresh_token="r1"))
    data = json.loads(store.path.read_text())
    assert data == {"sessions": {"1": {"access_token": "a1", "refresh_token": "r1"}}}


def test_get_unknown_user_returns_none(store):
    assert store.get("nobody") is None


def test_missing_or_empty_file_loads_empty(store):
    store.load()
    assert len(store) == 0
    store.path.write_text("")
    store.load()
    assert len(store) == 0


def test_corrupt_file_loads_empty(store):
    store.path.write_text("{not json")
    store.load()
    assert len(store) == 0


@pytest.mark.parametrize("content", ['[]', '"x"', '42', '{"sessions": []}', '{"sessions": "x"}'])
def test_unexpected_layout_loads_empty(store, content):
    store.path.write_text(content)
    store.load()
    assert len(store) == 0


def test_partial_entries_are_skipped(store):
    store.path.write_text(
        json.dumps(
            {
                "sessions": {
                    "ok": {"access_token": "a", "refresh_token": "r"},
                    "no_refresh": {"access_token": "a"},
                    "blank": {"access_token": "", "refresh_token": "r"},
                }
            }
        )
    )
    store.load()
    assert store.get("ok") is not None
    assert store.get("no_refresh") is None
    assert store.get("blank") is None


def test_put_rejects_incomplete_session(store):
    with pytest.raises(ValueError):
        store.put(UserSession(user_id="1", access_token="a", refresh_token=""))
    assert store.get("1") is None


def test_delete(store):
    store.put(UserSession(user_id="1", access_token="a", refresh_token="r"))
    assert store.delete("1") is True
    assert store.delete("1") is False
    reloaded = TokenStore(store.path)
    reloaded.load()
    assert reloaded.get("1") is None


def test_write_failure_keeps_memory(tmp_path, caplog):
    target = tmp_path / "tokens.json"
    target.mkdir()  # os.replace onto a directory fails
    store = TokenStore(target)
    with caplog.at_level(logging.ERROR):
        store.put(UserSession(user_id="1", access_token="a", refresh_token="r"))
    assert store.get("1") == UserSession("1", "a", "r")
    assert "failed writing" in caplog.text


def test_concurrent_writes_for_different_users_all_land(store):
    def writer(i):
        for n in range(20):
            store.put(UserSession(user_id=str(i), access_token=f"a{i}-{n}", refresh_token=f"r{i}"))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    reloaded = TokenStore(store.path)
    reloaded.load()
    assert len(reloaded) == 8
    for i in range(8):
        assert reloaded.get(str(i)).access_token == f"a{i}-19"
