"""
Tests for mission item storage
"""

import pytest

from src.mission.commands import NavCommand
from src.mission.models import MissionItem
from src.mission.store import MemoryItemStore, MissionStore, StorageError


@pytest.fixture
def items():
    return [
        MissionItem(NavCommand.TAKEOFF, lat=47.3977, lon=8.5456, altitude=20.0),
        MissionItem(NavCommand.WAYPOINT, lat=47.3987, lon=8.5456, altitude=30.0),
        MissionItem(NavCommand.LAND, lat=47.3987, lon=8.5456, altitude=0.0),
    ]


class TestMemoryItemStore:
    """Test the in-memory store"""

    def test_store_and_read(self, items):
        store = MemoryItemStore()
        mission = store.store(items)

        assert mission.count == 3
        assert store.read(mission.storage_id, 1) == items[1]

    def test_explicit_storage_id(self, items):
        store = MemoryItemStore()
        mission = store.store(items, storage_id="dm0")

        assert mission.storage_id == "dm0"

    def test_out_of_range(self, items):
        store = MemoryItemStore()
        mission = store.store(items)

        with pytest.raises(StorageError):
            store.read(mission.storage_id, 3)

    def test_unknown_mission(self):
        with pytest.raises(StorageError):
            MemoryItemStore().read("nope", 0)

    def test_storage_error_is_io_error(self):
        assert issubclass(StorageError, IOError)


class TestMissionStore:
    """Test the JSON directory store"""

    def test_create_and_get(self, tmp_path, items):
        store = MissionStore(str(tmp_path))
        mission = store.create(items)

        assert (tmp_path / f"{mission.storage_id}.json").exists()
        assert store.get(mission.storage_id) == mission
        assert store.list_all() == [mission.storage_id]

    def test_read_from_disk(self, tmp_path, items):
        mission = MissionStore(str(tmp_path)).create(items)

        fresh = MissionStore(str(tmp_path))
        assert fresh.read(mission.storage_id, 2) == items[2]

    def test_read_out_of_range(self, tmp_path, items):
        store = MissionStore(str(tmp_path))
        mission = store.create(items)

        with pytest.raises(StorageError):
            store.read(mission.storage_id, 5)

    def test_get_missing(self, tmp_path):
        assert MissionStore(str(tmp_path)).get("missing") is None

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")
        store = MissionStore(str(tmp_path))

        assert store.get("broken") is None
        with pytest.raises(StorageError):
            store.read("broken", 0)

    def test_delete(self, tmp_path, items):
        store = MissionStore(str(tmp_path))
        mission = store.create(items)

        assert store.delete(mission.storage_id)
        assert not store.delete(mission.storage_id)
        assert store.get(mission.storage_id) is None

    def test_clear_cache(self, tmp_path, items):
        store = MissionStore(str(tmp_path))
        mission = store.create(items)
        (tmp_path / f"{mission.storage_id}.json").write_text("{}")

        assert store.get(mission.storage_id).count == 3
        store.clear_cache()
        assert store.get(mission.storage_id).count == 0
