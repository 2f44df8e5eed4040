'''Recurring background task on a fixed interval, used to keep the feed cache warm.'''

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import structlog


class IntervalScheduler:
    '''Runs a coroutine callback immediately, then every interval_seconds until stopped.'''

    def __init__(self, interval_seconds: float = 3600) -> None:
        self._interval = interval_seconds
        self._callback: Callable[..., Coroutine[Any, Any, None]] | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self.runs = 0

    def schedule(
        self,
        callback: Callable[..., Coroutine[Any, Any, None]],
        *args: Any,
        **kwargs: Any,
    ) -> None:
        self._callback = callback
        self._args = args
        self._kwargs = kwargs

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if not self._callback:
            raise RuntimeError('No callback scheduled; call schedule() first')
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run_loop(self) -> None:
        log = structlog.get_logger()
        while not self._stop_event.is_set():
            try:
                await self._callback(*self._args, **self._kwargs)
            except Exception:
                log.exception('scheduled refresh failed')
            self.runs += 1
            try:
                await asyncio.wait_for(self._stop_event.wait(), self._interval)
            except asyncio.TimeoutError:
                pass
