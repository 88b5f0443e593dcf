import pytest
from sqlalchemy.exc import OperationalError

from avicontrol.core.events import EventBus
from avicontrol.core.exceptions import StorageError


class TestKeyValueStorage:
    def test_set_get_remove(self, ctx):
        storage = ctx.storage
        storage.set("k", "v1")
        storage.set("k", "v2")
        assert storage.get("k") == "v2"
        assert storage.has("k")

        storage.remove("k")
        assert storage.get("k") is None
        assert not storage.has("k")

    def test_set_many_is_one_write(self, ctx):
        ctx.storage.set_many({"a": "1", "b": "2"})
        assert ctx.storage.get("a") == "1"
        assert ctx.storage.get("b") == "2"

    def test_clear_by_prefix(self, ctx):
        ctx.storage.set("otra_app", "x")
        ctx.storage.clear("avi_")
        assert ctx.storage.get("avi_users") is None
        assert ctx.storage.get("otra_app") == "x"

    def test_read_failure_is_not_absence(self, ctx, monkeypatch):
        class BrokenSession:
            def get(self, *args, **kwargs):
                raise OperationalError("SELECT", {}, Exception("disk I/O error"))

            def close(self):
                pass

        ctx.storage.set("k", "v")
        monkeypatch.setattr(ctx.storage, "session_factory", BrokenSession)

        assert ctx.storage.get("k") is None
        with pytest.raises(StorageError):
            ctx.storage.has("k")


class TestEventBus:
    def test_unsubscribe(self):
        bus = EventBus()
        calls = []
        unsubscribe = bus.subscribe("orders", lambda: calls.append(1))
        assert bus.listener_count("orders") == 1

        unsubscribe()
        bus.publish("orders")

        assert calls == []
        assert bus.listener_count("orders") == 0

    def test_failing_listener_does_not_stop_others(self):
        bus = EventBus()
        calls = []

        def broken():
            raise RuntimeError("boom")

        bus.subscribe("users", broken)
        bus.subscribe("users", lambda: calls.append("ok"))
        bus.publish("users")

        assert calls == ["ok"]
