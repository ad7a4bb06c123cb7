# backend/scheduling/api/dependencies/actor.py
"""
Caller identity.

Authentication is not part of this service: the gateway in front of it
forwards the authenticated user as ``X-Actor-Id``.
"""

from fastapi import Header, HTTPException, status

from ...core.ulid_helper import is_valid_ulid

ACTOR_HEADER = "X-Actor-Id"


def get_actor_id(x_actor_id: str = Header(..., alias=ACTOR_HEADER)) -> str:
    """Return the caller's user ID from the ``X-Actor-Id`` header."""
    actor_id = x_actor_id.strip()
    if not is_valid_ulid(actor_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": f"{ACTOR_HEADER} must be a ULID", "code": "INVALID_ACTOR_ID"},
        )
    return actor_id
