import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from clinic_store.exceptions import InvalidTransitionError, NotFoundError, StoreError, ValidationError
from clinic_store.models import Appointment, AppointmentStatus
from clinic_store.services.collection_codec import APPOINTMENTS, CollectionCodec
from clinic_store.services.notification_service import NotificationEngine
from clinic_store.services.scheduling import (
    clinic_today,
    generate_time_slots,
    next_day,
    parse_date,
    within_booking_window,
)

logger = logging.getLogger(__name__)

Pending = AppointmentStatus.PENDING
Confirmed = AppointmentStatus.CONFIRMED
Cancelled = AppointmentStatus.CANCELLED

# Allowed status changes. Terminal states have no exits.
STRICT_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    Pending: frozenset({Confirmed, Cancelled}),
    Confirmed: frozenset(),
    Cancelled: frozenset(),
}

# Lets staff flip a decision after the fact. Nothing ever goes back to pending.
REOPENING_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    Pending: frozenset({Confirmed, Cancelled}),
    Confirmed: frozenset({Cancelled}),
    Cancelled: frozenset({Confirmed}),
}


class AppointmentRequest(BaseModel):
    """Booking form payload. Slot grid, window and today's date come in through the validation context."""

    patient_id: str
    patient_name: str
    doctor_id: str
    doctor_name: str
    date: str
    time: str
    specialty: str
    description: str = ""

    @field_validator("patient_id", "patient_name", "doctor_id", "doctor_name", "date", "time", "specialty")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field is required.")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()

    @field_validator("time")
    @classmethod
    def on_slot_grid(cls, v: str, info: ValidationInfo) -> str:
        slots = (info.context or {}).get("slots") or generate_time_slots()
        if v not in slots:
            raise ValueError(f"Time must be one of the half-hour slots from {slots[0]} to {slots[-1]}.")
        return v

    @field_validator("date")
    @classmethod
    def inside_booking_window(cls, v: str, info: ValidationInfo) -> str:
        context = info.context or {}
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError("Date must be a valid DD/MM/YYYY date.")
        today = context.get("today") or date.today()
        months = context.get("window_months", 3)
        if not within_booking_window(parsed, today, months):
            raise ValueError(f"Date must be between today and {months} months ahead.")
        return v


class AppointmentRepository:
    """CRUD and status transitions over the appointment collection."""

    def __init__(
        self,
        codec: CollectionCodec,
        notifier: Optional[NotificationEngine] = None,
        *,
        timezone: str = "America/Sao_Paulo",
        slots: Optional[list[str]] = None,
        booking_window_months: int = 3,
        transitions: Optional[dict] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.codec = codec
        self.notifier = notifier
        self.slots = slots or generate_time_slots()
        self.booking_window_months = booking_window_months
        self.transitions = transitions or STRICT_TRANSITIONS
        self.today = today or (lambda: clinic_today(timezone))

    # -------------------------------
    # 🔍 READS
    # -------------------------------

    async def list_all(self) -> list[Appointment]:
        return await self.codec.load(APPOINTMENTS)

    async def list_by_patient(self, patient_id: str) -> list[Appointment]:
        return [a for a in await self.list_all() if a.patient_id == patient_id]

    async def list_by_doctor(self, doctor_id: str) -> list[Appointment]:
        return [a for a in await self.list_all() if a.doctor_id == doctor_id]

    async def get(self, appointment_id: str) -> Appointment:
        for a in await self.list_all():
            if a.id == appointment_id:
                return a
        raise NotFoundError("Appointment", appointment_id)

    async def booked_slots(self, doctor_id: str, date: str) -> list[str]:
        """Times already taken on that day. Cancelled appointments free their slot."""
        return [
            a.time
            for a in await self.list_by_doctor(doctor_id)
            if a.date == date and a.status != Cancelled
        ]

    async def available_slots(self, doctor_id: str, date: str) -> list[str]:
        booked = set(await self.booked_slots(doctor_id, date))
        return [s for s in self.slots if s not in booked]

    async def due_for_reminder(self, today: Optional[date] = None) -> list[Appointment]:
        """Confirmed appointments happening the day after `today`."""
        tomorrow = next_day(today or self.today())
        return [a for a in await self.list_all() if a.status == Confirmed and a.date == tomorrow]

    # -------------------------------
    # ✏️ WRITES
    # -------------------------------

    def validate(self, **fields) -> AppointmentRequest:
        try:
            return AppointmentRequest.model_validate(
                fields,
                context={
                    "slots": self.slots,
                    "today": self.today(),
                    "window_months": self.booking_window_months,
                },
            )
        except PydanticValidationError as e:
            errors = [err for err in e.errors() if err.get("loc")]
            names = [str(err["loc"][0]) for err in errors]
            details = "; ".join(f"{err['loc'][0]}: {err['msg']}" for err in errors)
            logger.warning(f"[create] validation_failed fields={names} error={details}")
            raise ValidationError(details, fields=names) from e

    async def create(
        self,
        patient_id: str,
        patient_name: str,
        doctor_id: str,
        doctor_name: str,
        date: str,
        time: str,
        specialty: str,
        description: str = "",
    ) -> Appointment:
        request = self.validate(
            patient_id=patient_id,
            patient_name=patient_name,
            doctor_id=doctor_id,
            doctor_name=doctor_name,
            date=date,
            time=time,
            specialty=specialty,
            description=description,
        )
        appointment = Appointment(**request.model_dump(), status=Pending)

        async with self.codec.mutate(APPOINTMENTS) as appointments:
            appointments.append(appointment)
        logger.info(
            f"[create] ✅ Appointment {appointment.id} for patient={patient_id} "
            f"with doctor={doctor_id} on {appointment.date} {appointment.time}"
        )

        if self.notifier:
            try:
                await self.notifier.notify_new_appointment(appointment.doctor_id, appointment)
            except StoreError:
                # The booking is already saved at this point.
                logger.exception(f"[create] Appointment {appointment.id} saved but doctor notification failed")
        return appointment

    async def set_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus | str,
        reason: Optional[str] = None,
    ) -> Appointment:
        try:
            target = AppointmentStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status {new_status!r}", fields=["status"]) from None

        async with self.codec.mutate(APPOINTMENTS) as appointments:
            appointment = next((a for a in appointments if a.id == appointment_id), None)
            if appointment is None:
                raise NotFoundError("Appointment", appointment_id)

            if target not in self.transitions.get(appointment.status, frozenset()):
                logger.warning(
                    f"[set_status] Rejected {appointment.status.value} -> {target.value} for {appointment_id}"
                )
                raise InvalidTransitionError(appointment.status.value, target.value)

            appointment.status = target
            updated = replace(appointment)

        logger.info(f"[set_status] Appointment {appointment_id} is now {target.value}")

        # Notifications live in another collection; its lock is taken only after ours is released.
        if self.notifier:
            try:
                if target == Confirmed:
                    await self.notifier.notify_appointment_confirmed(updated.patient_id, updated)
                elif target == Cancelled:
                    await self.notifier.notify_appointment_cancelled(updated.patient_id, updated, reason)
            except StoreError:
                logger.exception(
                    f"[set_status] Appointment {appointment_id} is {target.value} but patient notification failed"
                )
        return updated

    async def confirm(self, appointment_id: str) -> Appointment:
        return await self.set_status(appointment_id, Confirmed)

    async def cancel(self, appointment_id: str, reason: Optional[str] = None) -> Appointment:
        return await self.set_status(appointment_id, Cancelled, reason)

    async def delete(self, appointment_id: str) -> None:
        """Removes the appointment. Notifications pointing at it stay as standalone records."""
        async with self.codec.mutate(APPOINTMENTS) as appointments:
            before = len(appointments)
            appointments[:] = [a for a in appointments if a.id != appointment_id]
            if len(appointments) == before:
                raise NotFoundError("Appointment", appointment_id)
        logger.info(f"[delete] Removed appointment {appointment_id}")
