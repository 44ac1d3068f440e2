"""
Document Store Module

Persists every collection as a single JSON document and exposes
whole-document ``load`` / ``save`` plus a ``transaction`` helper for
the load → mutate → save cycle.

Concurrency:
    Writers are serialized by a process-wide asyncio.Lock and a
    cross-process FileLock (several uvicorn workers may share the data
    directory). Writes go to a temporary file that is then os.replace'd
    over the document, so lock-free readers always see a complete
    document.

Usage:
    store = get_document_store()

    async with store.transaction() as document:
        document.meta.next_order_id += 1   # saved on clean exit

Version: 1.0.0
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator

from filelock import FileLock, Timeout
from pydantic import ValidationError as SchemaError

from hostel_orders.core.config import Settings, get_settings
from hostel_orders.core.exceptions import PersistenceError
from hostel_orders.core.security import hash_pin
from hostel_orders.models import AdminAccount, MenuItem, Meta, StoreDocument
from hostel_orders.seed_data import STARTER_MENU

logger = logging.getLogger(__name__)

BOOTSTRAP_ADMIN_ID = "admin-1"


class DocumentStore:
    """JSON-file backed store for the whole application state."""

    def __init__(
        self,
        path: Path,
        admin_pin: str,
        starting_order_id: int,
        lock_timeout: float = 30,
    ):
        self.path = Path(path)
        self.admin_pin = admin_pin
        self.starting_order_id = starting_order_id
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")

        self._write_lock = asyncio.Lock()
        # Acquired in a worker thread, released on the event loop thread.
        self._file_lock = FileLock(
            str(self.lock_path), timeout=lock_timeout, thread_local=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        return cls(
            path=settings.document_path,
            admin_pin=settings.admin_pin,
            starting_order_id=settings.starting_order_id,
            lock_timeout=settings.storage_lock_timeout,
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def build_initial_document(self) -> StoreDocument:
        """Document written on first use: starter menu, one admin, empty ledgers."""
        return StoreDocument(
            menu=[MenuItem.model_validate(item) for item in STARTER_MENU],
            admins=[
                AdminAccount(id=BOOTSTRAP_ADMIN_ID, pin_hash=hash_pin(self.admin_pin))
            ],
            meta=Meta(next_order_id=self.starting_order_id),
        )

    async def initialize(self) -> bool:
        """
        Bootstrap the document if it does not exist yet.

        Returns:
            True if a new document was written

        Raises:
            PersistenceError: if the storage location is unusable
        """
        async with self._locked():
            created = await asyncio.to_thread(self._bootstrap_if_missing)
        if created:
            logger.info(f"Bootstrapped new document at {self.path}")
        else:
            # Fail fast on a corrupt or unreadable file.
            await asyncio.to_thread(self._read)
        return created

    async def load(self) -> StoreDocument:
        """Return a fresh snapshot of the whole document."""
        if not self.path.exists():
            await self.initialize()
        return await asyncio.to_thread(self._read)

    async def save(self, document: StoreDocument) -> None:
        """Replace the whole document."""
        async with self._locked():
            await asyncio.to_thread(self._write, document)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreDocument]:
        """
        Hold the write lock for one load → mutate → save cycle.

        The document is written back only when the block exits cleanly;
        an exception discards every in-memory change.
        """
        async with self._locked():
            document = await asyncio.to_thread(self._read_or_bootstrap)
            yield document
            await asyncio.to_thread(self._write, document)

    async def health_check(self) -> bool:
        """Verify the document can be read."""
        try:
            await self.load()
        except PersistenceError as e:
            logger.error(f"Storage health check failed: {e}")
            return False
        return True

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        async with self._write_lock:
            try:
                self.lock_path.parent.mkdir(parents=True, exist_ok=True)
                await asyncio.to_thread(self._file_lock.acquire)
            except Timeout as e:
                raise PersistenceError(f"timed out waiting for {self.lock_path}") from e
            except OSError as e:
                raise PersistenceError(f"cannot create lock {self.lock_path}: {e}") from e
            try:
                yield
            finally:
                self._file_lock.release()

    def _bootstrap_if_missing(self) -> bool:
        if self.path.exists():
            return False
        self._write(self.build_initial_document())
        return True

    def _read_or_bootstrap(self) -> StoreDocument:
        if self._bootstrap_if_missing():
            logger.info(f"Bootstrapped new document at {self.path}")
        return self._read()

    def _read(self) -> StoreDocument:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"cannot read {self.path}: {e}") from e

        try:
            return StoreDocument.model_validate_json(raw)
        except SchemaError as e:
            raise PersistenceError(f"corrupt document {self.path}: {e}") from e

    def _write(self, document: StoreDocument) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                document.model_dump_json(by_alias=True, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"cannot write {self.path}: {e}") from e
        logger.debug(f"Document saved ({len(document.orders)} orders)")


@lru_cache()
def get_document_store() -> DocumentStore:
    """
    Get the process-wide document store.

    Cached so every request shares the same write lock.
    """
    return DocumentStore.from_settings(get_settings())


def reset_document_store() -> None:
    """Clear the cached store (used when settings change, e.g. in tests)."""
    get_document_store.cache_clear()
