"""Browser session manager.

Multiplexes a handful of long-lived remote browser connections behind
short-lived tool calls. Sessions are keyed by a random UUID, capped at
``max_sessions``, refreshed on every lookup and closed after
``idle_timeout`` seconds without activity by a background reaper.

The reaper runs only while at least one session exists: the first open
starts it, and it stops when the table becomes empty.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from spider_mcp.exceptions import CapacityExceededError, SessionNotFoundError
from spider_mcp.models import OpenedSession, SessionSnapshot
from spider_mcp.services.remote_browser import BrowserOptions, RemoteBrowser, connect_remote_browser

if TYPE_CHECKING:
    from playwright.async_api import Page

LOGGER = logging.getLogger(__name__)

MAX_SESSIONS = 5
SESSION_IDLE_TIMEOUT = 5 * 60  # seconds
REAP_INTERVAL = 60  # seconds

Connector: TypeAlias = Callable[[str, BrowserOptions], Awaitable[RemoteBrowser]]


@dataclass
class Session:
    """A session id bound to one remote browser connection."""

    session_id: str
    browser: RemoteBrowser
    last_access: float
    created_at: float = field(default=0.0)


class BrowserSessionManager:
    """Owns the session table, admission control and the idle reaper.

    Example:
        >>> manager = BrowserSessionManager()
        >>> opened = await manager.open(api_key, engine="auto")
        >>> page = manager.get_page(opened.session_id)
        >>> await manager.close(opened.session_id)
    """

    def __init__(
        self,
        connector: Connector = connect_remote_browser,
        max_sessions: int = MAX_SESSIONS,
        idle_timeout: float = SESSION_IDLE_TIMEOUT,
        reap_interval: float = REAP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialise the manager.

        Args:
            connector: Coroutine creating a connected RemoteBrowser.
            max_sessions: Concurrent session limit.
            idle_timeout: Seconds of inactivity before a session is reaped.
            reap_interval: Seconds between reaper scans.
            clock: Monotonic time source.
        """
        self._connector = connector
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.reap_interval = reap_interval
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._pending = 0
        self._reaper: asyncio.Task[None] | None = None
        self._teardowns: set[asyncio.Task[None]] = set()

    # -- admission -----------------------------------------------------------

    async def open(
        self,
        api_key: str,
        engine: str | None = None,
        stealth: int | None = None,
        country: str | None = None,
        mode: str | None = None,
    ) -> OpenedSession:
        """Open a new remote browser session.

        Raises:
            CapacityExceededError: If ``max_sessions`` sessions are live or opening.
            BrowserConnectionError: If the remote browser cannot be reached.
        """
        # Check and reserve with no await in between.
        if len(self._sessions) + self._pending >= self.max_sessions:
            raise CapacityExceededError(self.max_sessions)
        self._pending += 1
        try:
            browser = await self._connector(
                api_key,
                BrowserOptions(engine=engine, stealth=stealth, country=country, mode=mode),
            )
        finally:
            self._pending -= 1

        session_id = str(uuid.uuid4())
        now = self._clock()
        self._sessions[session_id] = Session(session_id, browser, last_access=now, created_at=now)
        browser.on_disconnect(lambda: self._on_disconnect(session_id, browser))
        self._start_reaper()

        LOGGER.info(f"Opened browser session {session_id} ({len(self._sessions)}/{self.max_sessions} active)")
        return OpenedSession(session_id=session_id, engine=browser.engine or engine or "auto")

    # -- lookup --------------------------------------------------------------

    def _touch(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id, idle_timeout=self.idle_timeout)
        session.last_access = self._clock()
        return session

    def get_page(self, session_id: str) -> Page:
        """Return the session's page and mark the session active.

        Raises:
            SessionNotFoundError: If the id is unknown, expired or closed.
        """
        return self._touch(session_id).browser.page

    def get_browser(self, session_id: str) -> RemoteBrowser:
        """Return the session's connection (for retrying navigation) and mark it active.

        Raises:
            SessionNotFoundError: If the id is unknown, expired or closed.
        """
        return self._touch(session_id).browser

    def session_count(self) -> int:
        return len(self._sessions)

    def snapshot(self) -> list[SessionSnapshot]:
        """Describe live sessions without refreshing their idle timers."""
        now = self._clock()
        return [
            SessionSnapshot(
                session_id=s.session_id,
                engine=s.browser.engine,
                idle_seconds=round(now - s.last_access, 1),
                age_seconds=round(now - s.created_at, 1),
            )
            for s in self._sessions.values()
        ]

    # -- teardown ------------------------------------------------------------

    def _detach(self, session_id: str) -> Session | None:
        """Remove a session from the table. Every removal goes through here."""
        session = self._sessions.pop(session_id, None)
        if session is not None and not self._sessions:
            self._stop_reaper()
        return session

    def _schedule_teardown(self, session: Session) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(
            self._teardown(session), name=f"browser-session-teardown-{session.session_id}"
        )
        self._teardowns.add(task)
        task.add_done_callback(self._teardowns.discard)
        return task

    async def _teardown(self, session: Session) -> None:
        try:
            await session.browser.close()
        except Exception as e:
            # Already disconnected server-side
            LOGGER.debug(f"Ignoring teardown error for session {session.session_id}: {e}")
        LOGGER.info(f"Closed browser session {session.session_id} ({len(self._sessions)} remaining)")

    def _on_disconnect(self, session_id: str, browser: RemoteBrowser) -> None:
        session = self._sessions.get(session_id)
        if session is None or session.browser is not browser:
            return
        self._detach(session_id)
        LOGGER.info(f"Browser session {session_id} dropped by remote; removed")
        # The connection is gone but its local Playwright driver is not
        self._schedule_teardown(session)

    async def close(self, session_id: str) -> None:
        """Close a session. Unknown or already closed ids are ignored."""
        session = self._detach(session_id)
        if session is None:
            return
        # Cancelling the caller (e.g. the reaper) must not abort the teardown
        await asyncio.shield(self._schedule_teardown(session))

    async def close_all(self) -> None:
        """Close every session concurrently and wait for pending teardowns. Called on server shutdown."""
        ids = list(self._sessions)
        if ids:
            results = await asyncio.gather(*(self.close(i) for i in ids), return_exceptions=True)
            for session_id, result in zip(ids, results, strict=True):
                if isinstance(result, BaseException):
                    LOGGER.warning(f"Error closing session {session_id} during shutdown: {result}")
        if self._teardowns:
            await asyncio.gather(*self._teardowns, return_exceptions=True)
        self._stop_reaper()

    # -- idle reaper ---------------------------------------------------------

    @property
    def reaper_running(self) -> bool:
        return self._reaper is not None and not self._reaper.done()

    def _start_reaper(self) -> None:
        if self.reaper_running:
            return
        self._reaper = asyncio.get_running_loop().create_task(self._reap_loop(), name="browser-session-reaper")

    def _stop_reaper(self) -> None:
        reaper, self._reaper = self._reaper, None
        if reaper is not None and not reaper.done() and reaper is not asyncio.current_task():
            reaper.cancel()

    async def _reap_loop(self) -> None:
        try:
            # A newer reaper may replace this one while a close is in flight.
            while self._reaper is asyncio.current_task():
                await asyncio.sleep(self.reap_interval)
                await self.reap_idle_sessions()
                if not self._sessions:
                    break
        finally:
            if self._reaper is asyncio.current_task():
                self._reaper = None

    async def reap_idle_sessions(self) -> list[str]:
        """Close sessions idle for longer than ``idle_timeout``.

        Returns:
            Ids of the sessions closed by this scan.
        """
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_access > self.idle_timeout]
        for session_id in expired:
            LOGGER.info(f"Reaping idle browser session {session_id}")
            await self.close(session_id)
        return expired
