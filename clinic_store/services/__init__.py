from clinic_store.services.appointment_service import AppointmentRepository
from clinic_store.services.blob_store import BlobStore, MemoryBlobStore, RedisBlobStore
from clinic_store.services.collection_codec import CollectionCodec
from clinic_store.services.notification_service import NotificationEngine
from clinic_store.services.reminder_service import dispatch_reminders
from clinic_store.services.statistics_service import Statistics, StatisticsAggregator
from clinic_store.services.user_service import UserDirectory

__all__ = [
    "AppointmentRepository",
    "BlobStore",
    "CollectionCodec",
    "MemoryBlobStore",
    "NotificationEngine",
    "RedisBlobStore",
    "Statistics",
    "StatisticsAggregator",
    "UserDirectory",
    "dispatch_reminders",
]
