# helpsync/__init__.py
# helpsync - client-side sync layer for neighbourhood help requests
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from .errors import ConfigError, DecodeError, NetworkError, RemoteStatusError, SyncError, ValidationError
from .identity import IdentityProvider
from .manager import OpResult, SyncEvent, SyncManager, UndoState, build_manager
from .models import Coordinate, HelpRequest, HelpRequestDraft
from .remote import GatewayConfig, RemoteGateway
from .state_store import StateStore
from .suppression import SuppressionStore

__version__ = "0.1.0"

__all__ = [
    "Coordinate",
    "HelpRequest",
    "HelpRequestDraft",
    "IdentityProvider",
    "SuppressionStore",
    "StateStore",
    "GatewayConfig",
    "RemoteGateway",
    "SyncManager",
    "build_manager",
    "OpResult",
    "SyncEvent",
    "UndoState",
    "SyncError",
    "NetworkError",
    "RemoteStatusError",
    "DecodeError",
    "ValidationError",
    "ConfigError",
]
