"""
Caller identity for API requests.
"""

from typing import Optional

from fastapi import Header

from ..core.errors import UnauthorizedError


def _extract_user_id(x_user_id: Optional[str]) -> Optional[str]:
    """Return the trimmed X-User-Id value, or None when absent or blank."""
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return _extract_user_id(x_user_id)


def require_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Like get_current_user_id but rejects unauthenticated callers with 401."""
    user_id = _extract_user_id(x_user_id)
    if user_id is None:
        raise UnauthorizedError()
    return user_id
