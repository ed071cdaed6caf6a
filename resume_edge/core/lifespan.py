import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from resume_edge.analytics.db import init_db, purge_old_records
from resume_edge.core.config import settings
from resume_edge.storage.file_store import get_file_store
from resume_edge.storage.kv_store import get_kv_store

logger = logging.getLogger(__name__)


def _purge_expired() -> dict[str, int]:
    deleted = purge_old_records()
    if settings.record_retention_days > 0:
        deleted["kv_records"] = get_kv_store().purge_older_than(settings.record_retention_days)
    return deleted


@asynccontextmanager
async def lifespan(app):
    init_db()
    get_file_store().ensure_ready()
    get_kv_store().ping()
    _purge_expired()

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = _purge_expired()
                if any(deleted.values()):
                    logger.info("retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover
                logger.warning("retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=3600)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
