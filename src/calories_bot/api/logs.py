"""Mini App endpoints for a user's calorie logs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import ValidationError

from calories_bot.api.auth import require_user_id
from calories_bot.domain.logs import LogCreate, LogUpdate  # noqa: TC001
from calories_bot.services.logs import LogNotFoundError

if TYPE_CHECKING:
    from calories_bot.containers import AppContainer

router = APIRouter(prefix="/api/logs", tags=["logs"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("")
async def list_logs(
    request: Request, user_id: int = Depends(require_user_id)
) -> list[dict[str, object]]:
    """Return the caller's logs, newest first."""
    logs = _container(request).log_service.list_logs(user_id)
    return [log.to_json() for log in logs]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_log(
    payload: LogCreate, request: Request, user_id: int = Depends(require_user_id)
) -> dict[str, object]:
    """Create a log entry for the caller."""
    log = _container(request).log_service.create_log(user_id, payload)
    return log.to_json()


@router.patch("/{log_id}")
async def update_log(
    log_id: str,
    payload: LogUpdate,
    request: Request,
    user_id: int = Depends(require_user_id),
) -> dict[str, object]:
    """Apply a partial update to one of the caller's logs."""
    try:
        log = _container(request).log_service.update_log(user_id, log_id, payload)
    except LogNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(
                include_url=False, include_context=False, include_input=False
            ),
        ) from exc
    return log.to_json()


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(
    log_id: str, request: Request, user_id: int = Depends(require_user_id)
) -> Response:
    """Delete one of the caller's logs."""
    try:
        _container(request).log_service.delete_log(user_id, log_id)
    except LogNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
