from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from clinic_store.models.base import Record, new_id, utc_now_iso


class NotificationType(str, Enum):
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_REMINDER = "appointment_reminder"
    GENERAL = "general"


@dataclass
class Notification(Record):
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.GENERAL
    read: bool = False
    appointment_id: Optional[str] = None  # lookup only, never cascades
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        self.type = NotificationType(self.type)
        # Anything but a real boolean counts as unread; "false" must not become True.
        if not isinstance(self.read, bool):
            self.read = False
