# Public surface of the manager package.
from ._types import OpResult, SyncEvent, UndoState
from ._undo import PendingDecline, UndoCoordinator
from .facade import SyncManager, build_manager

__all__ = [
    "SyncManager",
    "build_manager",
    "OpResult",
    "SyncEvent",
    "UndoState",
    "UndoCoordinator",
    "PendingDecline",
]
