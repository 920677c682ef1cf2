import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Type, TypeVar

from clinic_store.exceptions import StoreError
from clinic_store.models import Appointment, Notification, Record, User
from clinic_store.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

APPOINTMENTS = "appointments"
NOTIFICATIONS = "notifications"
USERS = "users"

# Collection name -> record shape
COLLECTIONS: dict[str, Type[Record]] = {
    APPOINTMENTS: Appointment,
    NOTIFICATIONS: Notification,
    USERS: User,
}


class CollectionCodec:
    """
    Reads and writes whole named collections as JSON arrays in the blob store.

    Each collection is one value, so every change is a read-modify-write of the
    full list. `mutate()` holds a per-collection lock across that sequence;
    writers that go around it can still overwrite each other.
    """

    def __init__(self, store: BlobStore, key_prefix: str = "@MedicalApp"):
        self.store = store
        self.key_prefix = key_prefix
        self._locks: dict[str, asyncio.Lock] = {}

    def key(self, name: str) -> str:
        return f"{self.key_prefix}:{name}"

    def _lock(self, name: str) -> asyncio.Lock:
        if name not in self._locks:
            self._locks[name] = asyncio.Lock()
        return self._locks[name]

    def _shape(self, name: str) -> Type[Record]:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise ValueError(f"Unknown collection {name!r}") from None

    def decode(self, name: str, raw: str | None) -> list:
        """Parse a stored payload. Absent or corrupt payloads become an empty list."""
        if not raw:
            return []

        shape = self._shape(name)
        try:
            items = json.loads(raw)
        except ValueError as e:
            # Data on this key is lost to readers until someone inspects it.
            logger.error(f"[load] ⚠️ Corrupted collection {self.key(name)}, treating as empty: {e}")
            return []

        if not isinstance(items, list):
            logger.error(
                f"[load] ⚠️ Collection {self.key(name)} is a {type(items).__name__}, not a list; treating as empty"
            )
            return []

        records = []
        for item in items:
            try:
                records.append(shape.from_dict(item))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"[load] Skipping malformed {name} record {item!r}: {e}")
        return records

    def encode(self, records: list) -> str:
        return json.dumps([r.to_dict() for r in records])

    async def load(self, name: str) -> list:
        key = self.key(name)
        try:
            raw = await self.store.get(key)
        except StoreError:
            logger.exception(f"[load] Failed to read {key}")
            raise
        return self.decode(name, raw)

    async def save(self, name: str, records: list) -> None:
        key = self.key(name)
        payload = self.encode(records)
        try:
            await self.store.set(key, payload)
        except StoreError:
            logger.exception(f"[save] Failed to write {key} ({len(records)} records)")
            raise
        logger.debug(f"[save] 💾 Wrote {len(records)} records to {key}")

    async def clear(self, name: str) -> None:
        async with self._lock(name):
            await self.store.remove(self.key(name))
        logger.info(f"[clear] Removed collection {self.key(name)}")

    @asynccontextmanager
    async def mutate(self, name: str) -> AsyncIterator[list]:
        """
        Critical section for one collection: load, hand the list to the caller,
        save it back when the block exits cleanly. An exception inside the block
        skips the save.
        """
        async with self._lock(name):
            records = await self.load(name)
            yield records
            await self.save(name, records)
