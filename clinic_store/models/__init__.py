from clinic_store.models.appointments_db import Appointment, AppointmentStatus
from clinic_store.models.base import Record, new_id, utc_now_iso
from clinic_store.models.notifications_db import Notification, NotificationType
from clinic_store.models.users_db import ROLE_LABELS, User, UserRole

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "Notification",
    "NotificationType",
    "ROLE_LABELS",
    "Record",
    "User",
    "UserRole",
    "new_id",
    "utc_now_iso",
]
