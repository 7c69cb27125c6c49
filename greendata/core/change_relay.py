"""
Cross-process delivery of the change feed over PostgreSQL LISTEN/NOTIFY.

Each process keeps one listening asyncpg connection and republishes every
notification into its local ``ChangeFeed``. Sessions emit ``pg_notify`` inside
their own transaction, so PostgreSQL only delivers committed changes.
"""
import asyncio
import logging
from typing import Optional

import asyncpg
from sqlalchemy import text
from sqlalchemy.engine import URL

from greendata.core.change_feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

_NOTIFY = text("SELECT pg_notify(:channel, :payload)")


class PostgresChangeRelay:
    def __init__(self, dsn: str, feed: ChangeFeed, channel: str, retry_delay: float = 5.0):
        self.dsn = dsn
        self.feed = feed
        self.channel = channel
        self.retry_delay = retry_delay

    def emit(self, connection, change: ChangeEvent):
        connection.execute(_NOTIFY, {"channel": self.channel, "payload": change.to_json()})

    async def run(self):
        """Listen until cancelled, reconnecting after connection loss."""
        while True:
            try:
                conn = await asyncpg.connect(self.dsn)
            except (OSError, asyncpg.PostgresError) as e:
                logger.error("Change relay could not connect: %s. Retrying in %s seconds...", e, self.retry_delay)
                await asyncio.sleep(self.retry_delay)
                continue

            lost = asyncio.Event()
            conn.add_termination_listener(lambda _conn: lost.set())
            try:
                await conn.add_listener(self.channel, self._on_notify)
                self.feed.relay = self
                logger.info("Change relay listening on channel '%s'", self.channel)
                await lost.wait()
                logger.warning("Change relay connection lost. Retrying in %s seconds...", self.retry_delay)
            finally:
                if self.feed.relay is self:
                    self.feed.relay = None
                if not conn.is_closed():
                    await conn.close()
            await asyncio.sleep(self.retry_delay)

    def _on_notify(self, connection, pid, channel, payload):
        try:
            change = ChangeEvent.from_json(payload)
        except (ValueError, KeyError, TypeError):
            logger.error("Could not decode change notification: %s", payload[:200])
            return
        logger.info("Change feed: %s %s id=%s user_id=%s", change.event, change.table, change.record_id, change.user_id)
        self.feed.publish(change)


def relay_for(url: URL, feed: ChangeFeed, channel: str, retry_delay: float = 5.0) -> Optional[PostgresChangeRelay]:
    """Relay for a PostgreSQL ``url``; other databases keep the in-process feed."""
    if url.get_backend_name() != "postgresql":
        return None
    dsn = url.set(drivername="postgresql").render_as_string(hide_password=False)
    return PostgresChangeRelay(dsn, feed, channel, retry_delay)
