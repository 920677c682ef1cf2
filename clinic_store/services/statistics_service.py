import logging
from collections import Counter
from dataclasses import dataclass, field

from clinic_store.models import Appointment, AppointmentStatus
from clinic_store.services.collection_codec import APPOINTMENTS, CollectionCodec

logger = logging.getLogger(__name__)


@dataclass
class Statistics:
    total_appointments: int = 0
    confirmed_appointments: int = 0
    pending_appointments: int = 0
    cancelled_appointments: int = 0
    total_patients: int = 0
    total_doctors: int = 0
    specialties: dict[str, int] = field(default_factory=dict)
    appointments_by_month: dict[str, int] = field(default_factory=dict)   # "MM/YYYY" -> count
    status_percentages: dict[str, float] = field(
        default_factory=lambda: {"confirmed": 0, "pending": 0, "cancelled": 0}
    )


def _percent(count: int, total: int) -> float:
    return count * 100 / total if total > 0 else 0


def _month_key(raw_date: str) -> str | None:
    if not isinstance(raw_date, str):
        return None
    parts = raw_date.split("/")
    if len(parts) != 3:
        return None
    _day, month, year = parts
    return f"{month}/{year}"


def compute(appointments: list[Appointment]) -> Statistics:
    """Aggregate a list of appointments. Bad dates only drop out of the monthly breakdown."""
    total = len(appointments)
    by_status = Counter(a.status for a in appointments)

    by_month: Counter = Counter()
    for a in appointments:
        key = _month_key(a.date)
        if key is None:
            logger.warning(f"[statistics] Skipping invalid date {a.date!r} on appointment {a.id}")
            continue
        by_month[key] += 1

    confirmed = by_status[AppointmentStatus.CONFIRMED]
    pending = by_status[AppointmentStatus.PENDING]
    cancelled = by_status[AppointmentStatus.CANCELLED]

    return Statistics(
        total_appointments=total,
        confirmed_appointments=confirmed,
        pending_appointments=pending,
        cancelled_appointments=cancelled,
        total_patients=len({a.patient_id for a in appointments}),
        total_doctors=len({a.doctor_id for a in appointments}),
        specialties=dict(Counter(a.specialty for a in appointments)),
        appointments_by_month=dict(by_month),
        status_percentages={
            "confirmed": _percent(confirmed, total),
            "pending": _percent(pending, total),
            "cancelled": _percent(cancelled, total),
        },
    )


class StatisticsAggregator:
    """Read-only view over the appointment collection."""

    def __init__(self, codec: CollectionCodec):
        self.codec = codec

    async def _appointments(self) -> list[Appointment]:
        return await self.codec.load(APPOINTMENTS)

    async def general(self) -> Statistics:
        return compute(await self._appointments())

    async def for_doctor(self, doctor_id: str) -> Statistics:
        return compute([a for a in await self._appointments() if a.doctor_id == doctor_id])

    async def for_patient(self, patient_id: str) -> Statistics:
        return compute([a for a in await self._appointments() if a.patient_id == patient_id])
