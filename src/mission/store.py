"""
Mission Store

Read-by-index access to stored mission items. Reads can fail; callers get
a StorageError and decide how to report it.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .models import Mission, MissionItem, ValidationError, items_from_list

logger = logging.getLogger(__name__)


class StorageError(IOError):
    """Raised when a mission item cannot be read from storage"""
    pass


class ItemStore(ABC):
    """Indexable, read-only view on stored mission items"""

    @abstractmethod
    def read(self, storage_id: str, index: int) -> MissionItem:
        """
        Read one mission item

        Args:
            storage_id: Storage handle of the mission
            index: Item index in [0, count)

        Raises:
            StorageError: If the item cannot be read
        """
        pass


class MemoryItemStore(ItemStore):
    """Item store kept in memory, used for uploads checked on the fly"""

    def __init__(self):
        self._missions: Dict[str, List[MissionItem]] = {}

    def store(self, items: Sequence[MissionItem], storage_id: Optional[str] = None) -> Mission:
        """Store items and return the mission handle"""
        if storage_id is None:
            storage_id = str(uuid.uuid4())
        self._missions[storage_id] = list(items)
        return Mission(count=len(items), storage_id=storage_id)

    def read(self, storage_id: str, index: int) -> MissionItem:
        items = self._missions.get(storage_id)
        if items is None:
            raise StorageError(f"unknown mission storage '{storage_id}'")
        if not 0 <= index < len(items):
            raise StorageError(f"item index {index} out of range for '{storage_id}'")
        return items[index]


class MissionStore(ItemStore):
    """
    Persistent storage for mission items

    Stores each mission as a JSON file in a directory.
    Each file is named with the mission's storage id.
    """

    def __init__(self, missions_dir: str = "~/.mischeck/missions"):
        """
        Initialize mission store

        Args:
            missions_dir: Directory to store mission files
        """
        self.missions_dir = Path(missions_dir).expanduser()
        self._ensure_directory()

        # Cache of loaded item lists (storage id -> items)
        self._cache: Dict[str, List[MissionItem]] = {}

    def _ensure_directory(self):
        """Create missions directory if it doesn't exist"""
        self.missions_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Mission store initialized at {self.missions_dir}")

    def _get_mission_path(self, storage_id: str) -> Path:
        """Get file path for a storage id"""
        return self.missions_dir / f"{storage_id}.json"

    def create(self, items: Sequence[MissionItem]) -> Mission:
        """
        Persist mission items

        Args:
            items: Items in mission order

        Returns:
            Handle of the stored mission
        """
        storage_id = str(uuid.uuid4())

        with open(self._get_mission_path(storage_id), "w") as f:
            json.dump({"items": [item.to_dict() for item in items]}, f, indent=2)

        self._cache[storage_id] = list(items)

        logger.info(f"Stored mission {storage_id} ({len(items)} items)")
        return Mission(count=len(items), storage_id=storage_id)

    def get(self, storage_id: str) -> Optional[Mission]:
        """Get the handle of a stored mission, None if not found"""
        try:
            items = self._load(storage_id)
        except StorageError as e:
            logger.error(f"Failed to load mission {storage_id}: {e}")
            return None
        return Mission(count=len(items), storage_id=storage_id)

    def read(self, storage_id: str, index: int) -> MissionItem:
        items = self._load(storage_id)
        if not 0 <= index < len(items):
            raise StorageError(f"item index {index} out of range for '{storage_id}'")
        return items[index]

    def list_all(self) -> List[str]:
        """List storage ids of all stored missions"""
        return sorted(path.stem for path in self.missions_dir.glob("*.json"))

    def delete(self, storage_id: str) -> bool:
        """
        Delete a mission

        Returns:
            True if deleted, False if not found
        """
        mission_path = self._get_mission_path(storage_id)

        if not mission_path.exists():
            return False

        self._cache.pop(storage_id, None)
        mission_path.unlink()
        logger.info(f"Deleted mission {storage_id}")

        return True

    def _load(self, storage_id: str) -> List[MissionItem]:
        """Load an item list from cache or file"""
        if storage_id in self._cache:
            return self._cache[storage_id]

        mission_path = self._get_mission_path(storage_id)
        try:
            with open(mission_path, "r") as f:
                data = json.load(f)
            items = items_from_list(data.get("items", []))
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
            raise StorageError(f"cannot read mission '{storage_id}': {e}")

        self._cache[storage_id] = items
        return items

    def clear_cache(self):
        """Clear the item cache"""
        self._cache.clear()
