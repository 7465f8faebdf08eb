"""
Mission module

Command taxonomy, mission item models and item storage.
"""

from .commands import (
    NavCommand,
    CommandCapability,
    CAPABILITIES,
    capability,
    command_name,
    has_position,
    is_pre_takeoff_tolerable,
    is_supported,
)
from .models import Mission, MissionItem, ValidationError
from .store import ItemStore, MemoryItemStore, MissionStore, StorageError

__all__ = [
    # Commands
    'NavCommand',
    'CommandCapability',
    'CAPABILITIES',
    'capability',
    'command_name',
    'has_position',
    'is_pre_takeoff_tolerable',
    'is_supported',
    # Models
    'Mission',
    'MissionItem',
    'ValidationError',
    # Store
    'ItemStore',
    'MemoryItemStore',
    'MissionStore',
    'StorageError',
]
