"""Enum types shared by the gateway and the sync client."""

from enum import Enum


class SyncState(str, Enum):
    """Connection health of a sync client."""
    connecting = "connecting"
    connected = "connected"
    degraded = "degraded"


class ServerMessage(str, Enum):
    """Push-channel events sent by the gateway."""
    candidates_list = "candidates:list"
    stats_data = "stats:data"
    candidate_data = "candidate:data"
    search_results = "candidates:searchResults"
    candidate_created = "candidate:created"
    candidate_updated = "candidate:updated"
    candidate_deleted = "candidate:deleted"
    candidates_updated = "candidates:updated"
    stats_updated = "stats:updated"
    error = "error"


class ClientMessage(str, Enum):
    """Push-channel requests accepted from clients."""
    get_all = "candidates:getAll"
    get_stats = "stats:get"
    get_candidate = "candidate:get"
    search = "candidates:search"
