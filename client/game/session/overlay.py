"""
Win-result overlay with automatic dismissal.

Showing a new result supersedes the one on screen and restarts the
countdown. Dismissal, manual or automatic, happens at most once per show.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.logic.types import WinSummary

DEFAULT_OVERLAY_SECONDS = 5.0


class ResultOverlay:
    """Holds the currently displayed win summary and its dismissal timer."""

    def __init__(
        self,
        duration: float = DEFAULT_OVERLAY_SECONDS,
        on_dismiss: Callable[[WinSummary], None] | None = None,
    ) -> None:
        self._duration = duration
        self._on_dismiss = on_dismiss
        self._current: WinSummary | None = None
        self._active_task: asyncio.Task[None] | None = None

    @property
    def current(self) -> WinSummary | None:
        return self._current

    @property
    def visible(self) -> bool:
        return self._current is not None

    def show(self, summary: WinSummary) -> None:
        """Display summary and (re)start the dismissal countdown."""
        self.cancel()
        self._current = summary
        logger.info("showing win result", winner=summary.player_name, win_type=summary.win_type)
        self._active_task = asyncio.create_task(self._run_timer(self._duration))

    def dismiss(self) -> None:
        """Hide the overlay now. No-op if nothing is shown."""
        self.cancel()
        self._hide()

    def cancel(self) -> None:
        """Stop the countdown without hiding the overlay."""
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None

    def _hide(self) -> None:
        summary, self._current = self._current, None
        if summary is not None and self._on_dismiss is not None:
            self._on_dismiss(summary)

    async def _run_timer(self, seconds: float) -> None:
        try:
            await asyncio.sleep(seconds)
            self._active_task = None
            self._hide()
        except asyncio.CancelledError:
            pass
        except (RuntimeError, ValueError):
            logger.exception("overlay dismissal callback failed")
