# =============================================================================
# login_core/offline/events.py
# Publish/Subscribe Channel
# =============================================================================

from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, List, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[T], Any]


class EventChannel(Generic[T]):
    """
    Observer channel with an explicit subscribe/unsubscribe lifecycle.

    Handlers run in subscription order and see payloads in emission order.
    A handler returning an awaitable has it scheduled on the running loop.
    Handler exceptions are logged and never reach the publisher.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Handler] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, payload: T) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:
                logger.error(f"{self.name} handler error: {e}", exc_info=True)

    def _schedule(self, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"{self.name}: no running loop, async handler dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(self._guard(awaitable))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(self, awaitable) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.error(f"{self.name} async handler error: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for async handlers scheduled so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
