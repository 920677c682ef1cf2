import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from config import get_config
from clinic_store.services.appointment_service import (
    REOPENING_TRANSITIONS,
    STRICT_TRANSITIONS,
    AppointmentRepository,
)
from clinic_store.services.blob_store import BlobStore, MemoryBlobStore, RedisBlobStore
from clinic_store.services.collection_codec import CollectionCodec
from clinic_store.services.notification_service import NotificationEngine
from clinic_store.services.scheduling import generate_time_slots
from clinic_store.services.statistics_service import StatisticsAggregator
from clinic_store.services.user_service import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class ClinicStore:
    """The only entry points presentation code is meant to use."""
    codec: CollectionCodec
    appointments: AppointmentRepository
    notifications: NotificationEngine
    statistics: StatisticsAggregator
    users: UserDirectory

    async def close(self) -> None:
        await self.codec.store.close()


def create_store(
    config=None,
    blob_store: Optional[BlobStore] = None,
    today: Optional[Callable[[], date]] = None,
) -> ClinicStore:
    """Initialize the record store from a config class."""
    config = config or get_config()

    if blob_store is None:
        if config.STORE_BACKEND == "memory":
            blob_store = MemoryBlobStore()
        else:
            blob_store = RedisBlobStore.from_config(config)

    codec = CollectionCodec(blob_store, key_prefix=config.KEY_PREFIX)
    notifications = NotificationEngine(codec)
    appointments = AppointmentRepository(
        codec,
        notifier=notifications,
        timezone=config.CLINIC_TIMEZONE,
        slots=generate_time_slots(config.OPENING_HOUR, config.CLOSING_HOUR, config.SLOT_MINUTES),
        booking_window_months=config.BOOKING_WINDOW_MONTHS,
        transitions=REOPENING_TRANSITIONS if config.ALLOW_TERMINAL_TRANSITIONS else STRICT_TRANSITIONS,
        today=today,
    )

    logger.info(f"[create_store] backend={type(blob_store).__name__} prefix={config.KEY_PREFIX}")
    return ClinicStore(
        codec=codec,
        appointments=appointments,
        notifications=notifications,
        statistics=StatisticsAggregator(codec),
        users=UserDirectory(codec),
    )
