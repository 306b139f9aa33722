import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, Query, status

from ..config import settings
from ..engine import TopicIndex


@lru_cache
def get_topic_index() -> TopicIndex:
    return TopicIndex()


def _configured_admin_key() -> Optional[str]:
    if settings.admin_api_key is None:
        return None
    return settings.admin_api_key.get_secret_value() or None


async def verify_admin(
    x_admin_key: Optional[str] = Header(None, alias="x-admin-key"),
    key: Optional[str] = Query(None),
) -> None:
    """
    Guard index mutations with the configured admin key.

    The ``x-admin-key`` header wins over the ``key`` query parameter. With
    no key configured, every mutation is refused.
    """
    expected = _configured_admin_key()
    if expected is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Index mutations are disabled (TOPIC_INDEX_ADMIN_API_KEY unset)",
        )

    provided = x_admin_key or key or ""
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing admin API key",
        )
