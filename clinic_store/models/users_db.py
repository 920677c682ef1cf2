from dataclasses import dataclass, field
from enum import Enum

from clinic_store.models.base import Record, new_id


class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


ROLE_LABELS = {
    UserRole.ADMIN: "Administrator",
    UserRole.DOCTOR: "Doctor",
    UserRole.PATIENT: "Patient",
}


@dataclass
class User(Record):
    name: str
    email: str
    role: UserRole = UserRole.PATIENT
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.role = UserRole(self.role)
