"""Scratch storage for archives while they are built and sent.

Each request gets its own directory ``bot-{epoch_ms}-{hex}`` under the
scratch root. The directory is removed once the chat transport has taken
the archive, after a grace delay that lets asynchronous uploads finish.
Removal failures are logged, never raised.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import shutil
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .errors import StorageProvisionError

logger = logging.getLogger(__name__)

SCOPE_PREFIX = 'bot'
DEFAULT_CLEANUP_DELAY_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class ScopedWorkArea:
    """One request's private scratch directory."""

    path: Path
    created_at: datetime

    @property
    def name(self) -> str:
        return self.path.name

    def file(self, filename: str) -> Path:
        return self.path / filename


def build_scope_name(now_ms: int | None = None, token: str | None = None) -> str:
    """``bot-{epoch_ms}-{8 hex chars}``; unique across concurrent requests."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f'{SCOPE_PREFIX}-{now_ms}-{token or secrets.token_hex(4)}'


class TransientStore:
    """Create and remove per-request scratch directories.

    Args:
        root: Directory under which scopes are created. Defaults to the
            system temp directory.
        cleanup_delay_seconds: Grace period used by :meth:`schedule_close`.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        cleanup_delay_seconds: float = DEFAULT_CLEANUP_DELAY_SECONDS,
    ) -> None:
        self.root = root or Path(tempfile.gettempdir())
        self.cleanup_delay_seconds = cleanup_delay_seconds
        self._pending: dict[Path, asyncio.Task] = {}

    def open_scope(self) -> ScopedWorkArea:
        """Create a fresh scope.

        Raises:
            StorageProvisionError: If the directory cannot be created.
        """
        path = self.root / build_scope_name()
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as exc:
            logger.error('Scratch directory could not be created: %s (%s)', path, exc)
            raise StorageProvisionError(f'cannot create {path}: {exc}') from exc
        return ScopedWorkArea(path=path, created_at=datetime.now(timezone.utc))

    def close(self, scope: ScopedWorkArea) -> bool:
        """Remove *scope* and everything in it. Returns True on success."""
        self._pending.pop(scope.path, None)
        try:
            shutil.rmtree(scope.path)
        except FileNotFoundError:
            return True
        except OSError:
            logger.warning('Error cleaning up scratch directory %s', scope.path, exc_info=True)
            return False
        return True

    def schedule_close(
        self, scope: ScopedWorkArea, delay: float | None = None,
    ) -> asyncio.Task:
        """Close *scope* after a grace delay on a background task."""
        wait = self.cleanup_delay_seconds if delay is None else delay
        task = asyncio.create_task(self._close_later(scope, wait))
        self._pending[scope.path] = task
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Close every scope still waiting for its grace delay."""
        pending = list(self._pending.items())
        self._pending.clear()
        for path, task in pending:
            task.cancel()
            try:
                shutil.rmtree(path)
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning('Error cleaning up scratch directory %s', path, exc_info=True)
        if pending:
            await asyncio.gather(*(task for _, task in pending), return_exceptions=True)

    async def _close_later(self, scope: ScopedWorkArea, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        self.close(scope)
