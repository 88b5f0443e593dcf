import asyncio

import pytest

from avicontrol.core.auth.service import AuthService
from avicontrol.core.context import AppContext
from avicontrol.core.exceptions import StorageError
from avicontrol.modules.sync.schemas import SyncState
from avicontrol.modules.sync.service import SyncService
from avicontrol.shared.schemas.entities import AppConfig, Batch, ClientOrder
from avicontrol.shared.storage import Collection
from tests.fakes import firebase_credentials, make_settings


def run(coro):
    return asyncio.run(coro)


async def wait_listeners(engine):
    for _ in range(200):
        if engine.status().listening == 0:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("los oyentes no terminaron")


def _batch(batch_id, name="LOTE"):
    return Batch(id=batch_id, name=name, created_by="1")


@pytest.fixture
def engine(ctx):
    return ctx.replication


class TestCredentials:
    @pytest.mark.parametrize("overrides,field", [
        ({"api_key": ""}, "apiKey"),
        ({"project_id": "  "}, "projectId"),
        ({"database_url": ""}, "databaseURL"),
        ({"database_url": "http://inseguro.firebaseio.com"}, "databaseURL"),
    ])
    def test_invalid_credentials_name_the_field(self, engine, mirror, overrides, field):
        result = run(engine.enable(firebase_credentials(**overrides)))

        assert not result.ok
        assert result.field == field
        assert engine.state == SyncState.DISABLED
        assert mirror.requests == []

    def test_unreachable_mirror_stays_disabled(self, engine, mirror):
        mirror.offline = True
        result = run(engine.enable(firebase_credentials()))

        assert not result.ok
        assert engine.state == SyncState.DISABLED


class TestInitialPull:
    def test_empty_mirror_is_seeded_from_local(self, engine, mirror, store):
        store.upsert(Collection.BATCHES, _batch("b1"))

        async def scenario():
            result = await engine.enable(firebase_credentials())
            await engine.disable()
            return result

        assert run(scenario()).ok
        assert [u["username"] for u in mirror.data["users"]] == ["admin"]
        assert [b["id"] for b in mirror.data["batches"]] == ["b1"]
        assert "orders" not in mirror.data

    def test_remote_data_replaces_local(self, engine, mirror, store):
        store.upsert(Collection.BATCHES, _batch("local"))
        mirror.data["batches"] = {
            "1": {"id": "r2", "name": "REMOTO 2"},
            "0": {"id": "r1", "name": "REMOTO 1", "totalCratesLimit": 40},
        }

        async def scenario():
            await engine.enable(firebase_credentials())
            await engine.disable()

        run(scenario())

        batches = store.get_all(Collection.BATCHES)
        assert [b.id for b in batches] == ["r1", "r2"]
        assert batches[0].total_crates_limit == 40
        # Lo recibido del espejo no se vuelve a subir
        assert mirror.puts("batches") == 0


class TestPush:
    def test_local_change_uploads_whole_collection(self, engine, mirror, store):
        async def scenario():
            await engine.enable(firebase_credentials())
            store.upsert(Collection.BATCHES, _batch("b1"))
            store.upsert(Collection.BATCHES, _batch("b2"))
            await engine.wait_idle()
            await engine.disable()

        run(scenario())

        assert [b["id"] for b in mirror.data["batches"]] == ["b1", "b2"]
        assert engine.last_push_at is not None

    def test_disable_stops_uploads_and_keeps_local_data(self, engine, mirror, store):
        async def scenario():
            await engine.enable(firebase_credentials())
            await engine.disable()
            store.upsert(Collection.BATCHES, _batch("b1"))
            await engine.wait_idle()

        run(scenario())

        assert mirror.puts("batches") == 0
        assert [b.id for b in store.get_all(Collection.BATCHES)] == ["b1"]

    def test_failed_upload_is_recorded_not_raised(self, engine, mirror, store):
        async def scenario():
            await engine.enable(firebase_credentials())
            mirror.fail_status = 500
            store.upsert(Collection.BATCHES, _batch("b1"))
            await engine.wait_idle()
            status = engine.status()
            await engine.disable()
            return status

        status = run(scenario())

        assert status.state == SyncState.ENABLED
        assert status.last_error
        assert [b.id for b in store.get_all(Collection.BATCHES)] == ["b1"]

    def test_push_all_requires_enabled(self, engine):
        assert not run(engine.push_all_collections()).ok

    def test_push_all_restores_mirror(self, engine, mirror, store):
        store.upsert(Collection.BATCHES, _batch("b1"))

        async def scenario():
            await engine.enable(firebase_credentials())
            mirror.data.clear()
            result = await engine.push_all_collections()
            await engine.disable()
            return result

        assert run(scenario()).ok
        assert set(mirror.data) == {"users", "batches"}

    def test_round_trip_between_devices(self, tmp_path, ctx, mirror, store):
        store.upsert(Collection.BATCHES, _batch("b1"))
        store.upsert(Collection.ORDERS, ClientOrder(id="o1", client_name="ANA", batch_id="b1", created_by="1"))
        other = AppContext(make_settings(tmp_path, "otro.db"), mirror_transport=mirror.transport)

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await ctx.replication.disable()
            await other.replication.enable(firebase_credentials())
            await other.replication.disable()

        try:
            run(scenario())
            for collection in Collection:
                mine = [x.to_storage() for x in store.get_all(collection)]
                theirs = [x.to_storage() for x in other.store.get_all(collection)]
                assert mine == theirs
        finally:
            other.db_engine.dispose()


class TestRemoteNotifications:
    def _context(self, tmp_path, mirror):
        return AppContext(make_settings(tmp_path, "escucha.db", mirror_listen=True), mirror_transport=mirror.transport)

    def test_put_notification_replaces_collection(self, tmp_path, mirror):
        ctx = self._context(tmp_path, mirror)
        mirror.stream_bodies["batches"] = (
            'event: put\n'
            'data: {"path": "/", "data": [{"id": "r1", "name": "REMOTO"}]}\n'
            '\n'
        )

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await wait_listeners(ctx.replication)
            await ctx.replication.disable()

        try:
            run(scenario())
            assert [b.id for b in ctx.store.get_all(Collection.BATCHES)] == ["r1"]
            assert mirror.puts("batches") == 0
        finally:
            ctx.db_engine.dispose()

    def test_empty_notification_keeps_local_data(self, tmp_path, mirror):
        ctx = self._context(tmp_path, mirror)
        ctx.store.upsert(Collection.BATCHES, _batch("b1"))
        mirror.stream_bodies["batches"] = 'event: put\ndata: {"path": "/", "data": null}\n\n'

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await wait_listeners(ctx.replication)
            await ctx.replication.disable()

        try:
            run(scenario())
            assert [b.id for b in ctx.store.get_all(Collection.BATCHES)] == ["b1"]
            assert mirror.puts("batches") == 1
        finally:
            ctx.db_engine.dispose()

    def test_partial_notification_refetches(self, tmp_path, mirror):
        ctx = self._context(tmp_path, mirror)
        mirror.stream_bodies["orders"] = 'event: patch\ndata: {"path": "/0", "data": {"clientName": "X"}}\n\n'

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            mirror.data["orders"] = [{"id": "o9", "clientName": "NUEVO"}]
            await wait_listeners(ctx.replication)
            await ctx.replication.disable()

        try:
            run(scenario())
            assert [o.client_name for o in ctx.store.get_all(Collection.ORDERS)] == ["NUEVO"]
        finally:
            ctx.db_engine.dispose()

    def test_cancel_is_reported(self, tmp_path, mirror):
        ctx = self._context(tmp_path, mirror)
        mirror.stream_bodies["users"] = 'event: cancel\ndata: null\n\n'

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await wait_listeners(ctx.replication)
            error = ctx.replication.last_error
            await ctx.replication.disable()
            return error

        try:
            assert "cancel" in run(scenario())
        finally:
            ctx.db_engine.dispose()


class TestMaintenance:
    def test_connection_test_does_not_change_state(self, engine, mirror):
        assert run(engine.test_connection(firebase_credentials())).ok
        assert ("GET", "") in mirror.requests

        mirror.fail_status = 403
        result = run(engine.test_connection(firebase_credentials()))
        assert not result.ok
        assert "Permiso" in result.message
        assert engine.state == SyncState.DISABLED

    def test_wipe_requires_confirmation(self, engine, mirror):
        async def scenario():
            await engine.enable(firebase_credentials())
            refused = await engine.wipe_remote()
            kept = dict(mirror.data)
            wiped = await engine.wipe_remote(confirm=True)
            await engine.disable()
            return refused, kept, wiped

        refused, kept, wiped = run(scenario())

        assert not refused.ok
        assert "users" in kept
        assert wiped.ok
        assert mirror.data == {}


class TestSyncService:
    def test_connect_and_disconnect_remember_cloud_flag(self, ctx, store):
        store.save_config(AppConfig(firebase_config=firebase_credentials()))
        service = SyncService(store, ctx.replication)

        async def scenario():
            connected = await service.connect()
            enabled = store.get_config().cloud_enabled
            await service.disconnect()
            return connected, enabled

        connected, enabled = run(scenario())

        assert connected.ok
        assert enabled
        assert not store.get_config().cloud_enabled
        assert ctx.replication.state == SyncState.DISABLED

    def test_startup_resumes_sync(self, ctx, store):
        store.save_config(AppConfig(cloud_enabled=True, firebase_config=firebase_credentials()))

        async def scenario():
            await ctx.startup()
            state = ctx.replication.state
            await ctx.replication.disable()
            return state

        assert run(scenario()) == SyncState.ENABLED

    def test_startup_with_bad_credentials_stays_local(self, ctx, store):
        store.save_config(AppConfig(cloud_enabled=True, firebase_config=firebase_credentials(api_key="")))
        run(ctx.startup())
        assert ctx.replication.state == SyncState.DISABLED


class TestFailedReconnect:
    def test_failed_enable_after_success_leaves_engine_disabled(self, engine, mirror, store):
        async def scenario():
            first = await engine.enable(firebase_credentials())
            mirror.offline = True
            second = await engine.enable(firebase_credentials())
            store.upsert(Collection.BATCHES, _batch("b1"))
            await engine.wait_idle()
            return first, second

        first, second = run(scenario())

        assert first.ok
        assert not second.ok
        status = engine.status()
        assert status.state == SyncState.DISABLED
        assert status.project_id is None
        assert status.last_error

    def test_non_json_mirror_is_reported_not_raised(self, engine, mirror):
        mirror.html = True

        result = run(engine.enable(firebase_credentials()))

        assert not result.ok
        assert "JSON" in result.message
        assert engine.state == SyncState.DISABLED
        assert not run(engine.test_connection(firebase_credentials())).ok

    def test_local_storage_failure_during_pull_is_reported(self, engine, mirror, store, monkeypatch):
        mirror.data["batches"] = [{"id": "r1", "name": "REMOTO"}]

        def broken(collection, entities):
            raise StorageError("disco lleno")

        monkeypatch.setattr(store, "replace_all", broken)

        result = run(engine.enable(firebase_credentials()))

        assert not result.ok
        assert "disco lleno" in result.message
        assert engine.state == SyncState.DISABLED


class TestWipeWithLiveListeners:
    def test_wipe_keeps_local_data_and_admin_login(self, tmp_path, mirror):
        ctx = AppContext(make_settings(tmp_path, "vivo.db", mirror_listen=True), mirror_transport=mirror.transport)
        ctx.store.upsert(Collection.BATCHES, _batch("b1"))
        mirror.live_streams = True

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await asyncio.sleep(0.05)
            wiped = await ctx.replication.wipe_remote(confirm=True)
            # Los oyentes reciben el espejo vacío
            await asyncio.sleep(0.05)
            users_after_wipe = ctx.store.get_all(Collection.USERS)
            restored = await ctx.replication.push_all_collections()
            await asyncio.sleep(0.05)
            mirror.streams_closed = True
            await ctx.replication.disable()
            return wiped, users_after_wipe, restored

        try:
            wiped, users_after_wipe, restored = run(scenario())

            assert wiped.ok
            assert [u.username for u in users_after_wipe] == ["admin"]
            assert AuthService.authenticate(users_after_wipe, "admin", "123") is not None
            assert [b.id for b in ctx.store.get_all(Collection.BATCHES)] == ["b1"]
            assert restored.ok
            assert [b["id"] for b in mirror.data["batches"]] == ["b1"]
        finally:
            ctx.db_engine.dispose()


class TestListenerFailures:
    def test_storage_error_in_listener_is_recorded(self, tmp_path, mirror, monkeypatch):
        ctx = AppContext(make_settings(tmp_path, "falla.db", mirror_listen=True), mirror_transport=mirror.transport)
        mirror.stream_bodies["orders"] = (
            'event: put\n'
            'data: {"path": "/", "data": [{"id": "o1", "clientName": "ANA"}]}\n'
            '\n'
        )

        def broken(collection, entities):
            raise StorageError("disco lleno")

        monkeypatch.setattr(ctx.store, "replace_all", broken)

        async def scenario():
            await ctx.replication.enable(firebase_credentials())
            await wait_listeners(ctx.replication)
            error = ctx.replication.last_error
            await ctx.replication.disable()
            return error

        try:
            assert "disco lleno" in run(scenario())
        finally:
            ctx.db_engine.dispose()


class TestPushFromOtherThreads:
    def test_push_scheduled_from_worker_thread_is_awaited(self, engine, mirror, store):
        async def scenario():
            await engine.enable(firebase_credentials())
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, store.upsert, Collection.BATCHES, _batch("b1"))
            await engine.wait_idle()
            data = list(mirror.data.get("batches", []))
            await engine.disable()
            return data

        assert [b["id"] for b in run(scenario())] == ["b1"]

    def test_unexpected_push_error_is_recorded(self, engine, mirror, store):
        async def scenario():
            await engine.enable(firebase_credentials())
            mirror.crash = True
            store.upsert(Collection.BATCHES, _batch("b1"))
            await engine.wait_idle()
            error = engine.last_error
            mirror.crash = False
            await engine.disable()
            return error

        assert "fallo inesperado" in run(scenario())
