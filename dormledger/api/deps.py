"""API dependencies shared by the routers."""

from typing import Annotated

from fastapi import Header

from dormledger.database import get_db

__all__ = ["get_db", "get_actor"]


async def get_actor(
    x_actor: Annotated[str | None, Header(max_length=100)] = None,
) -> str | None:
    """Staff member named by the ``X-Actor`` header, recorded in the audit trail.

    Authentication happens in front of this service.
    """
    if x_actor is None:
        return None
    return x_actor.strip() or None
