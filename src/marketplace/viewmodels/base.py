from __future__ import annotations

import asyncio
import dataclasses
from typing import Callable, Generic, List, Optional, TypeVar

from marketplace.errors import MarketplaceError
from marketplace.utils.logger import get_logger
from marketplace.utils.result import Result
from marketplace.utils.subscription import CompositeSubscription, Subscription

S = TypeVar("S")

_logger = get_logger(__name__)


class ViewModel(Generic[S]):
    """
    Holds one frozen state snapshot per screen.

    State dataclasses carry ``is_loading`` and ``error``; failures only set
    ``error`` and keep everything else. Store listeners opened by the view
    model are tracked and released by ``close()``.
    """

    def __init__(self, initial: S) -> None:
        self._state = initial
        self._observers: List[Callable[[S], object]] = []
        self._subscriptions = CompositeSubscription()
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> S:
        return self._state

    @property
    def closed(self) -> bool:
        return not self._subscriptions.active

    def observe(self, observer: Callable[[S], object]) -> Subscription:
        """Call ``observer`` with the current state now and after each change."""
        self._observers.append(observer)
        observer(self._state)
        return Subscription(lambda: self._observers.remove(observer))

    def _update(self, **changes) -> None:
        self._state = dataclasses.replace(self._state, **changes)
        for observer in list(self._observers):
            observer(self._state)

    def _track(self, subscription: Subscription) -> Subscription:
        return self._subscriptions.add(subscription)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _fail(self, failure: Result | MarketplaceError | str) -> None:
        if isinstance(failure, Result):
            message = failure.message
        else:
            message = str(failure) or type(failure).__name__
        self._update(is_loading=False, error=message)

    def _on_listen_error(self, error: MarketplaceError) -> None:
        self._fail(error)

    def clear_error(self) -> None:
        self._update(error=None)

    def close(self) -> None:
        """Release every listener and pending task; later calls do nothing."""
        if not self._subscriptions.cancel():
            return
        for task in list(self._tasks):
            task.cancel()
        self._observers.clear()
        _logger.debug(f"{type(self).__name__} closed")
