# outgoing push notifications, queued as documents for a sender to pick up
from __future__ import annotations

from typing import List

from marketplace.db.models import PushNotification
from marketplace.db.store import DocumentStore, now_ms
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result

_logger = get_logger(__name__)


class NotificationRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._outbox = store.collection("notifications")

    @returns_result
    async def queue_push(self, push: PushNotification) -> str:
        snap = await self._outbox.add({**push.to_dict(), "queuedAt": now_ms()})
        _logger.debug(f"Queued push {snap.id} to {push.to}")
        return snap.id

    @returns_result
    async def get_queued(self) -> List[PushNotification]:
        snaps = await self._outbox.order_by("queuedAt").get()
        return [PushNotification.from_dict(s.data) for s in snaps]
