"""In-memory session store and lifecycle coordinator for the /estimate flow.

Sessions are volatile: they live in a process-local map and are lost on
restart. The coordinator does not validate transitions; the conversation
handlers only act on sessions in the state they expect.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from calories_bot.domain.sessions import Session, SessionState

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = timedelta(minutes=15)
DEFAULT_SWEEP_INTERVAL = timedelta(minutes=5)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class SessionStore:
    """Thread-safe map from Telegram user id to session snapshot."""

    def __init__(self, clock: Clock = _utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[int, Session] = {}

    def get(self, user_id: int) -> Session:
        """Return the user's session, creating an idle one if absent.

        Reading counts as activity, so the stored timestamp is refreshed.
        """
        with self._lock:
            current = self._sessions.get(user_id)
            if current is None:
                session = Session(
                    user_id=user_id,
                    state=SessionState.IDLE,
                    last_activity=self._clock(),
                )
            else:
                session = replace(current, last_activity=self._touch(current))
            self._sessions[user_id] = session
            return session

    def set(self, session: Session) -> None:
        """Replace the stored session wholesale."""
        with self._lock:
            self._sessions[session.user_id] = session

    def update(self, user_id: int, **changes: object) -> Session:
        """Apply changes to the user's session and refresh its activity."""
        with self._lock:
            current = self._sessions.get(user_id)
            if current is None:
                current = Session(
                    user_id=user_id,
                    state=SessionState.IDLE,
                    last_activity=self._clock(),
                )
            session = replace(current, last_activity=self._touch(current), **changes)
            self._sessions[user_id] = session
            return session

    def delete(self, user_id: int) -> None:
        """Remove the user's session; missing sessions are ignored."""
        with self._lock:
            self._sessions.pop(user_id, None)

    def delete_if_idle(self, user_id: int, cutoff: datetime) -> bool:
        """Remove the session only if its last activity is before ``cutoff``.

        The entry is re-read under the lock, so a session refreshed after a
        snapshot was taken survives.
        """
        with self._lock:
            current = self._sessions.get(user_id)
            if current is None or current.last_activity >= cutoff:
                return False
            del self._sessions[user_id]
            return True

    def for_each(self, visit: Callable[[Session], None]) -> None:
        """Call ``visit`` for every session in a point-in-time snapshot.

        The lock is released before visiting, so ``visit`` may delete entries.
        """
        with self._lock:
            snapshot = list(self._sessions.values())
        for session in snapshot:
            visit(session)

    def now(self) -> datetime:
        """Return the current time on the store's clock."""
        return self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _touch(self, session: Session) -> datetime:
        now = self._clock()
        return max(now, session.last_activity)


@dataclass
class SessionManager:
    """Drives session state for the conversation and expires idle sessions."""

    store: SessionStore = field(default_factory=SessionStore)
    idle_timeout: timedelta = DEFAULT_IDLE_TIMEOUT
    sweep_interval: timedelta = DEFAULT_SWEEP_INTERVAL
    _expiry_task: asyncio.Task[None] | None = field(default=None, init=False)

    def get_session(self, user_id: int) -> Session:
        """Return the user's session, creating an idle one on first access."""
        return self.store.get(user_id)

    def update_state(self, user_id: int, state: SessionState) -> Session:
        """Set the session state unconditionally and return the new snapshot."""
        return self.store.update(user_id, state=state)

    def set_pending_message(self, user_id: int, message_id: int) -> Session:
        """Remember the latest bot message of the flow for this user."""
        return self.store.update(user_id, pending_message_id=message_id)

    def delete_session(self, user_id: int) -> None:
        """Drop the user's session; the next access starts fresh."""
        self.store.delete(user_id)

    def sweep_expired(self) -> int:
        """Delete sessions idle longer than the timeout and return the count."""
        cutoff = self.store.now() - self.idle_timeout
        removed = 0

        def visit(session: Session) -> None:
            nonlocal removed
            if session.last_activity < cutoff and self.store.delete_if_idle(
                session.user_id, cutoff
            ):
                removed += 1

        self.store.for_each(visit)
        return removed

    def start_expiry(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._expiry_task is not None and not self._expiry_task.done():
            return
        self._expiry_task = asyncio.create_task(self._expiry_loop())
        logger.info(
            "Session expiry started (every %ss, idle timeout %ss)",
            int(self.sweep_interval.total_seconds()),
            int(self.idle_timeout.total_seconds()),
        )

    async def stop_expiry(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task = self._expiry_task
        self._expiry_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def expiry_running(self) -> bool:
        return self._expiry_task is not None and not self._expiry_task.done()

    async def _expiry_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval.total_seconds())
            try:
                removed = self.sweep_expired()
            except Exception:
                logger.exception("Session sweep failed")
                continue
            if removed:
                logger.info("Expired %s idle session(s)", removed)
