"""Identity collaborator.

The engine only needs the acting user's display name for audit entries;
it treats it as an opaque string.
"""

from __future__ import annotations

from typing import Any, Optional

SYSTEM_USER = "System"


def resolve_actor(user: Optional[Any]) -> str:
    """Return a display name for *user*, or the ``"System"`` sentinel."""
    if user is None or not getattr(user, "is_authenticated", False):
        return SYSTEM_USER
    full_name = ""
    get_full_name = getattr(user, "get_full_name", None)
    if callable(get_full_name):
        full_name = (get_full_name() or "").strip()
    if full_name:
        return full_name
    username = getattr(user, "username", "") or str(user)
    return username.strip() or SYSTEM_USER
