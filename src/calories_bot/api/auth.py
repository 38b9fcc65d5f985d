"""Mini App identity from the X-Telegram-Init-Data header.

The init data hash is not verified: any caller that can forge the header can
act as any user. This mirrors the demo deployment and is a known weakness.
"""

import json
import logging
from urllib.parse import parse_qs

from fastapi import Header, HTTPException, status
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

INIT_DATA_HEADER = "X-Telegram-Init-Data"


class InitDataUser(BaseModel):
    """User object embedded in Telegram WebApp init data."""

    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None


class InitDataError(ValueError):
    """Raised when init data cannot be parsed into a user."""


def parse_init_data(init_data: str) -> InitDataUser:
    """Extract the user from a URL-encoded init data string."""
    if not init_data:
        raise InitDataError("initData is empty")
    values = parse_qs(init_data, keep_blank_values=True)
    user_json = (values.get("user") or [""])[0]
    if not user_json:
        raise InitDataError("user data not found in initData")
    try:
        user = InitDataUser.model_validate(json.loads(user_json))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise InitDataError(f"failed to parse user JSON: {exc}") from exc
    if user.id == 0:
        raise InitDataError("user ID is zero or missing")
    return user


async def require_user_id(
    x_telegram_init_data: str | None = Header(default=None),
) -> int:
    """Resolve the calling Telegram user id or reject with 401."""
    if not x_telegram_init_data:
        logger.info("%s header missing", INIT_DATA_HEADER)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{INIT_DATA_HEADER} header missing",
        )
    try:
        user = parse_init_data(x_telegram_init_data)
    except InitDataError as exc:
        logger.info("Rejected init data: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid initData: {exc}",
        ) from exc
    return user.id
