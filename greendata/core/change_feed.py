"""
Row-level change notifications for the ``files`` table.

Rows written through an ORM session are collected on flush and published once
the transaction commits; a rollback discards them. Subscribers filter by owner
(``user_id``) or pass ``None`` to receive every change.

When a relay is attached (see ``greendata.core.change_relay``) flushed changes
are handed to it inside the transaction instead, and come back through the
relay's listener in every process once the transaction commits.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from itertools import count
from typing import AsyncIterator, Callable, Dict, Iterable, Optional, Tuple

from sqlalchemy import event

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

_PENDING_KEY = "change_feed.pending"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    user_id: int
    record_id: Optional[int] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, payload: str) -> "ChangeEvent":
        data = json.loads(payload)
        return cls(
            table=data["table"],
            event=data["event"],
            user_id=int(data["user_id"]),
            record_id=data.get("record_id"),
        )


Callback = Callable[[ChangeEvent], None]


class ChangeFeed:
    def __init__(self, tables: Iterable[str] = ("files",)):
        self.tables = set(tables)
        self.relay = None
        self._ids = count(1)
        self._subscribers: Dict[int, Tuple[Optional[int], Callback]] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, user_id: Optional[int], callback: Callback) -> Callable[[], None]:
        """Register ``callback`` for changes owned by ``user_id`` and return its unsubscribe function."""
        sub_id = next(self._ids)
        self._subscribers[sub_id] = (user_id, callback)
        logger.debug("Subscriber %s attached (user_id=%s). Total: %s", sub_id, user_id, self.subscriber_count)

        def unsubscribe():
            if self._subscribers.pop(sub_id, None) is not None:
                logger.debug("Subscriber %s detached. Total: %s", sub_id, self.subscriber_count)

        return unsubscribe

    def publish(self, change: ChangeEvent):
        for user_id, callback in list(self._subscribers.values()):
            if user_id is not None and user_id != change.user_id:
                continue
            try:
                callback(change)
            except Exception:
                logger.exception("Change feed subscriber failed for %s", change)

    @asynccontextmanager
    async def channel(self, user_id: Optional[int]) -> AsyncIterator["asyncio.Queue[ChangeEvent]"]:
        """Subscribe for the lifetime of the block, delivering changes into a queue."""
        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()

        def deliver(change: ChangeEvent):
            # commits may happen on another thread's loop
            loop.call_soon_threadsafe(queue.put_nowait, change)

        unsubscribe = self.subscribe(user_id, deliver)
        try:
            yield queue
        finally:
            unsubscribe()

    # SQLAlchemy session hooks

    def install(self, session_cls):
        event.listen(session_cls, "after_flush", self._collect)
        event.listen(session_cls, "after_commit", self._release)
        event.listen(session_cls, "after_rollback", self._discard)

    def _collect(self, session, flush_context):
        relay = self.relay
        pending = session.info.setdefault(_PENDING_KEY, [])
        for kind, objects in ((INSERT, session.new), (UPDATE, session.dirty), (DELETE, session.deleted)):
            for obj in objects:
                table = getattr(obj, "__tablename__", None)
                if table not in self.tables:
                    continue
                if kind == UPDATE and not session.is_modified(obj):
                    continue
                change = ChangeEvent(table=table, event=kind, user_id=obj.user_id, record_id=obj.id)
                if relay is not None:
                    # Delivered by the database on commit, dropped on rollback
                    relay.emit(session.connection(), change)
                else:
                    pending.append(change)

    def _release(self, session):
        for change in session.info.pop(_PENDING_KEY, []):
            logger.info("Change feed: %s %s id=%s user_id=%s", change.event, change.table, change.record_id, change.user_id)
            self.publish(change)

    def _discard(self, session):
        session.info.pop(_PENDING_KEY, None)


change_feed = ChangeFeed()
