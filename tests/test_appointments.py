import asyncio

import pytest

from clinic_store.exceptions import InvalidTransitionError, NotFoundError, StoreError, ValidationError
from clinic_store.models import AppointmentStatus, NotificationType
from clinic_store.services.blob_store import MemoryBlobStore
from config import TestConfig


def test_create_sets_pending_and_persists(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        return appt, await store.appointments.list_all()

    appt, stored = asyncio.run(scenario())
    assert appt.status is AppointmentStatus.PENDING
    assert appt.id
    assert stored == [appt]


def test_create_notifies_doctor(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        return appt, await store.notifications.list_for_user("d1")

    appt, notes = asyncio.run(scenario())
    assert len(notes) == 1
    assert notes[0].type is NotificationType.GENERAL
    assert notes[0].appointment_id == appt.id
    assert "Ana Souza" in notes[0].message


def test_ids_are_unique_under_rapid_creation(store, booking):
    async def scenario():
        for _ in range(20):
            await store.appointments.create(**booking)
        return await store.appointments.list_all()

    ids = [a.id for a in asyncio.run(scenario())]
    assert len(set(ids)) == 20


@pytest.mark.parametrize("time", ["09:00", "17:30", "12:30"])
def test_slot_grid_accepts(store, booking, time):
    appt = asyncio.run(store.appointments.create(**dict(booking, time=time)))
    assert appt.time == time


@pytest.mark.parametrize("time", ["08:30", "18:00", "09:15", "9:00", ""])
def test_slot_grid_rejects(store, booking, time):
    with pytest.raises(ValidationError) as exc:
        asyncio.run(store.appointments.create(**dict(booking, time=time)))
    assert "time" in exc.value.fields


@pytest.mark.parametrize("field", ["patient_id", "patient_name", "doctor_id", "doctor_name", "specialty"])
def test_required_fields(store, booking, field):
    with pytest.raises(ValidationError) as exc:
        asyncio.run(store.appointments.create(**dict(booking, **{field: "   "})))
    assert exc.value.fields == [field]


@pytest.mark.parametrize(
    "value",
    [
        "10/03/2025",  # today
        "10/06/2025",  # last day of the three-month window
    ],
)
def test_date_window_edges_accepted(store, booking, value):
    assert asyncio.run(store.appointments.create(**dict(booking, date=value))).date == value


@pytest.mark.parametrize(
    "value",
    [
        "09/03/2025",  # yesterday
        "11/06/2025",  # one day past the window
        "31/02/2025",  # not a calendar date
        "2025-03-15",
        "15/3/2025",
    ],
)
def test_date_window_rejects(store, booking, value):
    with pytest.raises(ValidationError) as exc:
        asyncio.run(store.appointments.create(**dict(booking, date=value)))
    assert exc.value.fields == ["date"]


def test_rejected_create_writes_nothing(store, blob_store, booking):
    with pytest.raises(ValidationError):
        asyncio.run(store.appointments.create(**dict(booking, time="18:00")))
    assert blob_store.data == {}


def test_filters_by_patient_and_doctor(store, booking):
    async def scenario():
        await store.appointments.create(**booking)
        await store.appointments.create(**dict(booking, patient_id="p2", time="10:30"))
        await store.appointments.create(**dict(booking, doctor_id="d2", time="11:00"))
        return (
            await store.appointments.list_by_patient("p1"),
            await store.appointments.list_by_doctor("d1"),
        )

    by_patient, by_doctor = asyncio.run(scenario())
    assert {a.time for a in by_patient} == {"10:00", "11:00"}
    assert {a.time for a in by_doctor} == {"10:00", "10:30"}


def test_confirm_notifies_patient_once(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        updated = await store.appointments.set_status(appt.id, "confirmed")
        return updated, await store.notifications.list_for_user("p1")

    updated, notes = asyncio.run(scenario())
    assert updated.status is AppointmentStatus.CONFIRMED
    assert len(notes) == 1
    assert notes[0].user_id == "p1"
    assert notes[0].type is NotificationType.APPOINTMENT_CONFIRMED
    assert notes[0].read is False
    assert "15/03/2025" in notes[0].message and "10:00" in notes[0].message


def test_cancel_with_reason(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.cancel(appt.id, reason="Doctor unavailable")
        return await store.appointments.get(appt.id), await store.notifications.list_for_user("p1")

    appt, notes = asyncio.run(scenario())
    assert appt.status is AppointmentStatus.CANCELLED
    assert notes[0].type is NotificationType.APPOINTMENT_CANCELLED
    assert notes[0].message.endswith("Reason: Doctor unavailable")


def test_set_status_unknown_id(store):
    with pytest.raises(NotFoundError):
        asyncio.run(store.appointments.set_status("missing", AppointmentStatus.CONFIRMED))


def test_set_status_unknown_value(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.set_status(appt.id, "rescheduled")

    with pytest.raises(ValidationError):
        asyncio.run(scenario())


@pytest.mark.parametrize(
    "first, second",
    [
        ("confirmed", "cancelled"),
        ("cancelled", "confirmed"),
        ("confirmed", "confirmed"),
        ("confirmed", "pending"),
    ],
)
def test_terminal_states_have_no_exits(store, booking, first, second):
    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.set_status(appt.id, first)
        await store.appointments.set_status(appt.id, second)

    with pytest.raises(InvalidTransitionError):
        asyncio.run(scenario())


def test_rejected_transition_leaves_record_and_notifications(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.confirm(appt.id)
        with pytest.raises(InvalidTransitionError):
            await store.appointments.cancel(appt.id)
        return await store.appointments.get(appt.id), await store.notifications.list_for_user("p1")

    appt, notes = asyncio.run(scenario())
    assert appt.status is AppointmentStatus.CONFIRMED
    assert [n.type for n in notes] == [NotificationType.APPOINTMENT_CONFIRMED]


def test_reopening_transitions_when_configured(make_store, booking):
    class Reopening(TestConfig):
        ALLOW_TERMINAL_TRANSITIONS = True

    store = make_store(Reopening)

    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.confirm(appt.id)
        await store.appointments.cancel(appt.id)
        return await store.appointments.get(appt.id)

    assert asyncio.run(scenario()).status is AppointmentStatus.CANCELLED


def test_never_back_to_pending_even_when_reopening(make_store, booking):
    class Reopening(TestConfig):
        ALLOW_TERMINAL_TRANSITIONS = True

    store = make_store(Reopening)

    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.cancel(appt.id)
        await store.appointments.set_status(appt.id, "pending")

    with pytest.raises(InvalidTransitionError):
        asyncio.run(scenario())


def test_delete_keeps_notifications(store, booking):
    async def scenario():
        appt = await store.appointments.create(**booking)
        await store.appointments.delete(appt.id)
        return appt, await store.appointments.list_all(), await store.notifications.list_for_user("d1")

    appt, remaining, notes = asyncio.run(scenario())
    assert remaining == []
    assert notes[0].appointment_id == appt.id


def test_delete_unknown_id(store):
    with pytest.raises(NotFoundError):
        asyncio.run(store.appointments.delete("missing"))


def test_booked_and_available_slots(store, booking):
    async def scenario():
        await store.appointments.create(**booking)
        cancelled = await store.appointments.create(**dict(booking, time="10:30"))
        await store.appointments.cancel(cancelled.id)
        await store.appointments.create(**dict(booking, doctor_id="d2", time="11:00"))
        return (
            await store.appointments.booked_slots("d1", "15/03/2025"),
            await store.appointments.available_slots("d1", "15/03/2025"),
        )

    booked, available = asyncio.run(scenario())
    assert booked == ["10:00"]
    assert "10:00" not in available
    assert "10:30" in available and "11:00" in available
    assert len(available) == 17


def test_concurrent_creates_are_both_kept(make_store, booking):
    store = make_store(latency=0.001)

    async def scenario():
        await asyncio.gather(
            store.appointments.create(**booking),
            store.appointments.create(**dict(booking, patient_id="p2")),
        )
        return await store.appointments.list_all()

    stored = asyncio.run(scenario())
    assert sorted(a.patient_id for a in stored) == ["p1", "p2"]


def test_concurrent_confirm_and_create_both_land(make_store, booking):
    store = make_store(latency=0.001)

    async def scenario():
        first = await store.appointments.create(**booking)
        await asyncio.gather(
            store.appointments.confirm(first.id),
            store.appointments.create(**dict(booking, patient_id="p2", time="11:00")),
        )
        return await store.appointments.list_all()

    stored = {a.patient_id: a for a in asyncio.run(scenario())}
    assert stored["p1"].status is AppointmentStatus.CONFIRMED
    assert stored["p2"].status is AppointmentStatus.PENDING


class _NotificationsDown(MemoryBlobStore):
    """Appointments persist normally; every notifications write fails."""

    async def set(self, key: str, value: str) -> None:
        if key.endswith(":notifications"):
            raise StoreError(f"Could not write {key}")
        await super().set(key, value)


def test_create_survives_failed_doctor_notification(make_store, booking):
    store = make_store(blob_store=_NotificationsDown())

    async def scenario():
        appt = await store.appointments.create(**booking)
        return appt, await store.appointments.list_all(), await store.notifications.list_for_user("d1")

    appt, stored, notes = asyncio.run(scenario())
    assert stored == [appt]
    assert notes == []


def test_status_change_survives_failed_patient_notification(make_store, booking):
    store = make_store(blob_store=_NotificationsDown())

    async def scenario():
        appt = await store.appointments.create(**booking)
        updated = await store.appointments.cancel(appt.id, reason="Holiday")
        return updated, await store.appointments.get(appt.id)

    updated, stored = asyncio.run(scenario())
    assert updated.status is AppointmentStatus.CANCELLED
    assert stored.status is AppointmentStatus.CANCELLED
