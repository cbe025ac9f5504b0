"""Tests for the memory, JSON file and SQL stores."""

import json

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import create_app
from contracts import Discovery, DiscoveryProfile, DiscoveryServiceError
from discovery.service import create_discovery
from extensions import db
from models import StoreDocument
from stores import JsonFileStore, MemoryStore, SqlStore, create_store


def sample(spot_id="A", account_id="walker-1"):
    return create_discovery(account_id, spot_id, "trail-1")


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_crud(self):
        store = MemoryStore("discoveries", Discovery)
        item = sample()

        assert (await store.create(item)).success
        assert (await store.create(item)).code == "ALREADY_EXISTS"
        assert (await store.get(item.id)).data.spot_id == "A"
        assert (await store.get("missing")).data is None

        updated = await store.update(item.id, {"scan_event_id": "scan-1", "id": "ignored"})
        assert updated.data.scan_event_id == "scan-1"
        assert updated.data.id == item.id

        assert (await store.update("missing", {})).code == "NOT_FOUND"
        assert (await store.delete(item.id)).data is True
        assert (await store.delete(item.id)).code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_upsert_replaces_by_id(self):
        store = MemoryStore("discoveries", Discovery)
        await store.upsert(sample())
        await store.upsert(sample())
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_list_filters(self):
        store = MemoryStore("discoveries", Discovery)
        for spot_id, account_id in [("A", "w1"), ("B", "w1"), ("A", "w2")]:
            await store.create(sample(spot_id, account_id))

        assert len((await store.list()).data) == 3
        assert len((await store.list({"account_id": "w1"})).data) == 2
        assert len((await store.list({"spot_id": ["B", "C"]})).data) == 1

    @pytest.mark.asyncio
    async def test_returned_entities_are_copies(self):
        store = MemoryStore("discoveries", Discovery)
        item = sample()
        await store.create(item)
        fetched = (await store.get(item.id)).data
        fetched.spot_id = "tampered"
        assert (await store.get(item.id)).data.spot_id == "A"

    def test_instances_do_not_share_state(self):
        first = MemoryStore("discoveries", Discovery)
        second = MemoryStore("discoveries", Discovery)
        first._documents["x"] = {}
        assert len(second) == 0


class TestJsonFileStore:
    @pytest.mark.asyncio
    async def test_persists_between_instances(self, tmp_path):
        store = JsonFileStore("profiles", DiscoveryProfile, tmp_path)
        await store.create(DiscoveryProfile(id="walker-1", account_id="walker-1", last_active_trail_id="t1"))

        payload = json.loads((tmp_path / "profiles.json").read_text())
        assert payload["walker-1"]["last_active_trail_id"] == "t1"

        reopened = JsonFileStore("profiles", DiscoveryProfile, tmp_path)
        assert (await reopened.get("walker-1")).data.last_active_trail_id == "t1"

    def test_corrupt_file_is_reported(self, tmp_path):
        (tmp_path / "profiles.json").write_text("{not json")
        with pytest.raises(DiscoveryServiceError) as excinfo:
            JsonFileStore("profiles", DiscoveryProfile, tmp_path)
        assert excinfo.value.code == "STORE_ERROR"

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back(self, tmp_path, monkeypatch):
        store = JsonFileStore("profiles", DiscoveryProfile, tmp_path)

        def broken():
            raise OSError("disk full")

        monkeypatch.setattr(store, "_persist", broken)
        result = await store.create(DiscoveryProfile(id="walker-1", account_id="walker-1"))
        assert result.code == "STORE_ERROR"
        assert result.error.details["original_error"] == "disk full"
        assert (await store.get("walker-1")).data is None


class TestFactory:
    def test_create_store(self, tmp_path):
        assert isinstance(create_store("memory", "c", Discovery), MemoryStore)
        assert isinstance(create_store("JSON", "c", Discovery, base_dir=tmp_path), JsonFileStore)
        assert isinstance(create_store("sql", "c", Discovery), SqlStore)
        with pytest.raises(ValueError):
            create_store("redis", "c", Discovery)
        with pytest.raises(ValueError):
            create_store("json", "c", Discovery)


@pytest.fixture
def sql_app():
    app = create_app({"TRAIL_STORE_TYPE": "sql", "SQLALCHEMY_DATABASE_URI": "sqlite://"})
    yield app
    with app.app_context():
        db.drop_all()


class TestSqlStore:
    @pytest.mark.asyncio
    async def test_crud(self, sql_app):
        with sql_app.app_context():
            store = SqlStore("discoveries", Discovery)
            item = sample()

            assert (await store.create(item)).success
            assert (await store.create(item)).code == "ALREADY_EXISTS"
            assert (await store.get(item.id)).data.discovered_at == item.discovered_at

            updated = await store.update(item.id, {"scan_event_id": "scan-1"})
            assert updated.data.scan_event_id == "scan-1"
            assert (await store.get(item.id)).data.scan_event_id == "scan-1"

            assert (await store.update("missing", {})).code == "NOT_FOUND"
            assert (await store.delete(item.id)).data is True
            assert (await store.get(item.id)).data is None

    @pytest.mark.asyncio
    async def test_containers_are_isolated(self, sql_app):
        with sql_app.app_context():
            discoveries = SqlStore("discoveries", Discovery)
            archive = SqlStore("discoveries_archive", Discovery)
            await discoveries.create(sample())
            assert len((await discoveries.list()).data) == 1
            assert (await archive.list()).data == []

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, sql_app):
        with sql_app.app_context():
            store = SqlStore("discoveries", Discovery)
            await store.upsert(sample())
            await store.upsert(sample())
            rows = StoreDocument.query.filter_by(container="discoveries").all()
            assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_upsert_recovers_from_duplicate_insert(self, sql_app, monkeypatch):
        """A rival writer inserts the same id first; our write lands as an update."""
        with sql_app.app_context():
            store = SqlStore("discoveries", Discovery)
            item = sample()
            rival = sample()
            rival.scan_event_id = "rival"

            def racing_merge(session, instance, **kwargs):
                monkeypatch.undo()
                db.session.add(StoreDocument(container="discoveries", id=item.id, payload=rival.to_dict()))
                db.session.commit()
                raise IntegrityError("INSERT INTO store_documents", {}, Exception("UNIQUE constraint failed"))

            monkeypatch.setattr(Session, "merge", racing_merge)
            result = await store.upsert(item)

            assert result.success
            assert (await store.get(item.id)).data.scan_event_id is None
            assert StoreDocument.query.filter_by(container="discoveries").count() == 1

    @pytest.mark.asyncio
    async def test_list_filters(self, sql_app):
        with sql_app.app_context():
            store = SqlStore("discoveries", Discovery)
            await store.create(sample("A", "w1"))
            await store.create(sample("B", "w2"))
            found = (await store.list({"account_id": "w2"})).data
            assert [item.spot_id for item in found] == ["B"]

    @pytest.mark.asyncio
    async def test_string_filters_run_in_the_database(self, sql_app):
        with sql_app.app_context():
            store = SqlStore("discoveries", Discovery)
            for spot_id, account_id in [("A", "w1"), ("B", "w1"), ("C", "w2")]:
                await store.create(sample(spot_id, account_id))

            assert store._query({"account_id": "w1"}).count() == 2
            assert store._query({"spot_id": ["A", "C"]}).count() == 2
            assert store._query({"account_id": "w1", "spot_id": ["C"]}).count() == 0

            found = (await store.list({"account_id": "w1", "spot_id": ["B", "C"]})).data
            assert [item.spot_id for item in found] == ["B"]
            assert len((await store.list({"scan_event_id": None})).data) == 3
