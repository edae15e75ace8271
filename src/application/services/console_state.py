"""
Application service: what is remembered about a user's last connection.
See docs/Architecture.md (Application layer) for the architectural rationale.

The snapshot is a non-authoritative reconnect hint. Only the essentials of
each collection are kept; the store may drop the "collections" key entirely
when the snapshot is over its size cap, but never the profile or selection.
"""

from typing import Any, Optional

from src.application.session.console_session import ConsoleSession
from src.domain.entities.connection_profile import ConnectionProfile

SNAPSHOT_VERSION = 1
EVICTABLE_KEYS = ("collections",)


def snapshot_from_session(session: ConsoleSession) -> dict[str, Any]:
    profile = session.profile
    return {
        "version": SNAPSHOT_VERSION,
        "profile": {
            "host": profile.host,
            "port": profile.port,
            "protocol": profile.protocol,
            "path": profile.path,
            "api_key": profile.api_key,
        },
        "selected_collection": session.selected_collection,
        "collections": [
            {"name": c.name, "num_documents": c.num_documents} for c in session.collections
        ],
    }


def profile_from_snapshot(snapshot: dict[str, Any]) -> Optional[ConnectionProfile]:
    """Rebuild the saved profile, or None if the snapshot is unusable."""
    if snapshot.get("version") != SNAPSHOT_VERSION:
        return None
    raw = snapshot.get("profile") or {}
    if not raw.get("host") or not raw.get("api_key"):
        return None
    try:
        port = int(raw.get("port", 8108))
    except (TypeError, ValueError):
        return None
    return ConnectionProfile(
        host=raw["host"],
        api_key=raw["api_key"],
        port=port,
        protocol=raw.get("protocol", "http"),
        path=raw.get("path", ""),
    )
