from dataclasses import dataclass, field
from enum import Enum

from clinic_store.models.base import Record, new_id, utc_now_iso


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class Appointment(Record):
    patient_id: str
    patient_name: str
    doctor_id: str
    doctor_name: str
    date: str       # DD/MM/YYYY, kept as typed by the user
    time: str       # HH:MM on the half-hour grid
    specialty: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    description: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        self.status = AppointmentStatus(self.status)
