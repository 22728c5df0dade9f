import asyncio
from collections.abc import Awaitable, Callable, Hashable

from loguru import logger


class AsyncLookupCache[K: Hashable, V]:
    """Process-lifetime memo of async lookups.

    The pending task is stored before it is awaited, so concurrent callers asking for
    the same key share a single fetch. Entries never expire; call :meth:`clear` when
    the data behind the cache changes.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: dict[K, asyncio.Task[V]] = {}

    def __contains__(self, key: K) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def get_or_fetch(self, key: K, fetch: Callable[[], Awaitable[V]]) -> V:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._tasks[key] = task
            task.add_done_callback(lambda t, key=key: self._evict_failed(key, t))

        # Shielded so that a cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    def _evict_failed(self, key: K, task: asyncio.Task[V]) -> None:
        if self._tasks.get(key) is not task:
            return
        if task.cancelled() or task.exception() is not None:
            logger.debug(f"Dropping failed {self.name} lookup for {key!r}")
            del self._tasks[key]

    def clear(self) -> None:
        """Forget every entry. Pending fetches still resolve for their current waiters."""
        self._tasks.clear()
