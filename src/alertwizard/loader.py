"""
Generation-tagged loading of dependent category items.

When a parent category's selection changes, categories that depend on it and
declare a ``load_items`` collaborator are refreshed with the parent's selected
ids. Each request carries a per-category generation number; a response whose
generation is no longer current is discarded, so a slow answer to an old
selection can never overwrite the items of a newer one.

Requests are fire-and-forget: inside a running event loop they are scheduled
as tasks immediately, otherwise they queue until ``wait()`` is awaited.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple, Union

from alertwizard.category_store import CategoryStore
from alertwizard.models import RecipientItem, coerce_items

logger = logging.getLogger(__name__)

ItemsResult = Iterable[Union[RecipientItem, Mapping[str, Any]]]
LoadItems = Callable[[List[str]], Union[Awaitable[ItemsResult], ItemsResult]]
LoadErrorHook = Callable[[str, Exception], None]


@dataclass(frozen=True)
class LoadRequest:
    """One call to a category's ``load_items`` collaborator."""
    category_key: str
    parent_ids: Tuple[str, ...]
    generation: int


class ItemLoadCoordinator:
    """Tracks loaders, last-seen parent selections and request generations per category."""

    def __init__(self, store: CategoryStore, on_error: Optional[LoadErrorHook] = None):
        self.store = store
        self.on_error = on_error
        self._loaders: Dict[str, LoadItems] = {}
        self._generations: Dict[str, int] = {}
        self._last_parent_ids: Dict[str, FrozenSet[str]] = {}
        self._queued: List[LoadRequest] = []
        self._tasks: Set[asyncio.Task] = set()

    def register(self, category_key: str, load_items: LoadItems) -> None:
        self._loaders[category_key] = load_items
        logger.debug(f"Registered item loader for {category_key!r}")

    def has_loader(self, category_key: str) -> bool:
        return category_key in self._loaders

    def current_generation(self, category_key: str) -> int:
        return self._generations.get(category_key, 0)

    def is_stale(self, request: LoadRequest) -> bool:
        return request.generation != self.current_generation(request.category_key)

    @property
    def pending_count(self) -> int:
        return len(self._queued) + len(self._tasks)

    # ========== REQUESTS ==========

    def request(self, category_key: str, parent_ids: Iterable[str]) -> Optional[LoadRequest]:
        """Create a load request if the parent selection changed since the last one.

        An empty parent selection clears the category's items instead of calling
        the collaborator. Either way the generation advances, which invalidates
        any response still in flight.

        Returns:
            The new LoadRequest, or None if nothing needs loading.
        """
        if category_key not in self._loaders:
            return None

        parent_set = frozenset(parent_ids)
        if self._last_parent_ids.get(category_key) == parent_set:
            return None
        self._last_parent_ids[category_key] = parent_set

        generation = self.current_generation(category_key) + 1
        self._generations[category_key] = generation

        if not parent_set:
            logger.debug(f"Parent selection of {category_key!r} emptied; clearing items")
            self.store.replace_items(category_key, ())
            return None

        request = LoadRequest(category_key=category_key, parent_ids=tuple(sorted(parent_set)), generation=generation)
        logger.debug(f"Load requested: {category_key!r} gen={generation} parents={list(request.parent_ids)}")
        return request

    def dispatch(self, request: LoadRequest) -> None:
        """Start ``request`` on the running loop, or queue it for wait()."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._queued.append(request)
            return
        task = loop.create_task(self.run(request))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def request_and_dispatch(self, category_key: str, parent_ids: Iterable[str]) -> Optional[LoadRequest]:
        request = self.request(category_key, parent_ids)
        if request is not None:
            self.dispatch(request)
        return request

    async def run(self, request: LoadRequest) -> bool:
        """Call the collaborator and apply its result unless it went stale.

        Returns:
            True if the items were applied to the store.
        """
        loader = self._loaders[request.category_key]
        try:
            result = loader(list(request.parent_ids))
            if inspect.isawaitable(result):
                result = await result
            items = coerce_items(result or ())
        except Exception as e:
            if self.is_stale(request):
                logger.debug(f"Ignoring failure of stale load {request.category_key!r} gen={request.generation}: {e}")
                return False
            logger.warning(f"Error loading items for {request.category_key!r}: {e}")
            self.store.replace_items(request.category_key, ())
            self._report_error(request.category_key, e)
            return False

        if self.is_stale(request):
            logger.debug(
                f"Discarding stale load {request.category_key!r} gen={request.generation} "
                f"(current={self.current_generation(request.category_key)})"
            )
            return False

        self.store.replace_items(request.category_key, items)
        return True

    async def wait(self) -> None:
        """Run queued requests and await every in-flight one."""
        while self._queued or self._tasks:
            queued, self._queued = self._queued, []
            for request in queued:
                self.dispatch(request)
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def reset(self) -> None:
        """Forget selections and invalidate everything in flight."""
        for key in list(self._generations):
            self._generations[key] += 1
        self._last_parent_ids.clear()
        self._queued.clear()

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Item load task failed: {task.exception()!r}")

    def _report_error(self, category_key: str, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(category_key, error)
        except Exception as e:
            logger.warning(f"Error in load error hook: {e}")
