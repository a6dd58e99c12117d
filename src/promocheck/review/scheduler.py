"""Debounced scheduling of review runs.

Discord fires several events in quick succession when a request is posted
(message create, embed update, the form bot's own reactions). Each trigger
schedules a run after a short delay; a newer trigger for the same channel
replaces a run that is still waiting instead of stacking another one.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Tuple, TypeVar

from promocheck.datatypes.discord_datatypes import ChannelID
from promocheck.util.logger import get_logger

logger = get_logger("review_scheduler")

T = TypeVar("T")


class ReviewScheduler:
    """
    Per-channel debounced task runner.

    Args:
        run: Coroutine function performing a review run; receives
            ``only_newest``.
        name: Human-readable name for logging.

    Runs themselves are serialized by a lock, so two triggers can never
    review the same request concurrently. Only the waiting phase is
    cancellable; a run that has started is allowed to finish.
    """

    def __init__(self, run: Callable[[bool], Awaitable[Any]], name: str = "review") -> None:
        self._run = run
        self._name = name
        self._pending: Dict[ChannelID, Tuple[asyncio.Task, bool]] = {}
        self._running: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def pending_channels(self) -> set[ChannelID]:
        return {channel_id for channel_id, (task, _) in self._pending.items() if not task.done()}

    def schedule(self, channel_id: ChannelID, delay: float, only_newest: bool = False) -> asyncio.Task:
        """Schedule a run for ``channel_id`` after ``delay`` seconds, superseding a waiting one.

        A superseded full batch is never narrowed: the replacement run only
        reviews the newest request when both triggers asked for that.
        """
        previous = self._pending.get(channel_id)
        if previous is not None and not previous[0].done():
            previous_task, previous_only_newest = previous
            previous_task.cancel()
            only_newest = only_newest and previous_only_newest
            logger.debug("[%s] Superseded pending run for channel %s", self._name, channel_id)

        task = asyncio.create_task(self._wait_then_run(channel_id, delay, only_newest))
        self._pending[channel_id] = (task, only_newest)
        return task

    async def _wait_then_run(self, channel_id: ChannelID, delay: float, only_newest: bool) -> None:
        await asyncio.sleep(delay)

        # From here on the run can no longer be superseded
        current = asyncio.current_task()
        pending = self._pending.get(channel_id)
        if pending is not None and pending[0] is current:
            del self._pending[channel_id]
        if current is not None:
            self._running.add(current)

        try:
            async with self._lock:
                await self._run(only_newest)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("[%s] Review run for channel %s failed: %s", self._name, channel_id, exc)
        finally:
            if current is not None:
                self._running.discard(current)

    async def run_exclusive(self, run: Callable[[], Awaitable[T]]) -> T:
        """Run ``run`` immediately, serialized with scheduled runs."""
        async with self._lock:
            return await run()

    async def shutdown(self) -> None:
        """Cancel waiting runs and wait for any in-flight run to finish."""
        waiting = [task for task, _ in self._pending.values()]
        for task in waiting:
            task.cancel()
        self._pending.clear()

        for task in waiting + list(self._running):
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info("[%s] Scheduler shutdown complete", self._name)
