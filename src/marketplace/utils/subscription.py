from __future__ import annotations

from typing import Callable, Iterable, Optional


class Subscription:
    """
    Handle returned by every ``listen``/``observe`` call.

    ``cancel()`` runs the release callback exactly once; later calls are
    no-ops and return False. Usable as a context manager.
    """

    def __init__(self, release: Optional[Callable[[], None]] = None) -> None:
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> bool:
        if not self._active:
            return False
        self._active = False
        release, self._release = self._release, None
        if release is not None:
            release()
        return True

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()


class CompositeSubscription(Subscription):
    """Cancels a group of subscriptions together."""

    def __init__(self, children: Iterable[Subscription] = ()) -> None:
        super().__init__(self._release_children)
        self._children: list[Subscription] = list(children)

    def add(self, child: Subscription) -> Subscription:
        if not self.active:
            child.cancel()
        else:
            self._children.append(child)
        return child

    def _release_children(self) -> None:
        children, self._children = self._children, []
        for child in children:
            child.cancel()
