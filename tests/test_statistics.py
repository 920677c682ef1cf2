import asyncio
import json
import logging

from clinic_store.models import Appointment, AppointmentStatus
from clinic_store.services.collection_codec import APPOINTMENTS
from clinic_store.services.statistics_service import compute


def _appt(status, **overrides):
    data = dict(
        patient_id="p1",
        patient_name="Ana",
        doctor_id="d1",
        doctor_name="Dr. Silva",
        date="15/03/2025",
        time="09:00",
        specialty="Cardiology",
        status=status,
    )
    data.update(overrides)
    return Appointment(**data)


def _ten():
    return (
        [_appt(AppointmentStatus.CONFIRMED, patient_id=f"p{i}") for i in range(3)]
        + [_appt(AppointmentStatus.PENDING, doctor_id="d2", specialty="Dermatology") for _ in range(4)]
        + [_appt(AppointmentStatus.CANCELLED, date="02/04/2025") for _ in range(3)]
    )


def test_status_percentages():
    stats = compute(_ten())
    assert stats.total_appointments == 10
    assert (stats.confirmed_appointments, stats.pending_appointments, stats.cancelled_appointments) == (3, 4, 3)
    assert stats.status_percentages == {"confirmed": 30, "pending": 40, "cancelled": 30}


def test_empty_collection_has_zero_percentages():
    stats = compute([])
    assert stats.total_appointments == 0
    assert stats.status_percentages == {"confirmed": 0, "pending": 0, "cancelled": 0}
    assert stats.specialties == {}
    assert stats.appointments_by_month == {}


def test_distinct_people_and_groupings():
    stats = compute(_ten())
    assert stats.total_patients == 3       # p0, p1, p2 (p1 repeats)
    assert stats.total_doctors == 2
    assert stats.specialties == {"Cardiology": 6, "Dermatology": 4}
    assert stats.appointments_by_month == {"03/2025": 7, "04/2025": 3}


def test_bad_dates_are_skipped_with_warning(caplog):
    appointments = [
        _appt(AppointmentStatus.PENDING),
        _appt(AppointmentStatus.PENDING, date="2025-03-15"),
        _appt(AppointmentStatus.CONFIRMED, date=""),
    ]
    with caplog.at_level(logging.WARNING):
        stats = compute(appointments)

    assert stats.total_appointments == 3
    assert stats.appointments_by_month == {"03/2025": 1}
    assert "Skipping invalid date" in caplog.text


def test_filtered_views(store):
    async def scenario():
        await store.codec.save(APPOINTMENTS, _ten())
        return (
            await store.statistics.general(),
            await store.statistics.for_doctor("d2"),
            await store.statistics.for_patient("p1"),
        )

    general, doctor, patient = asyncio.run(scenario())
    assert general.total_appointments == 10
    assert doctor.total_appointments == 4
    assert doctor.status_percentages["pending"] == 100
    assert patient.total_appointments == 8
    assert patient.total_doctors == 2


def test_unknown_doctor_yields_empty_stats(store):
    stats = asyncio.run(store.statistics.for_doctor("nobody"))
    assert stats.total_appointments == 0
    assert stats.status_percentages["confirmed"] == 0


def test_non_string_date_does_not_block_aggregation(store, caplog):
    async def scenario():
        good = _appt(AppointmentStatus.CONFIRMED)
        odd = dict(_appt(AppointmentStatus.PENDING).to_dict(), date=20250315)
        store.codec.store.data[store.codec.key(APPOINTMENTS)] = json.dumps([good.to_dict(), odd])
        return await store.statistics.general()

    with caplog.at_level(logging.WARNING):
        stats = asyncio.run(scenario())

    assert stats.total_appointments == 2
    assert stats.status_percentages == {"confirmed": 50, "pending": 50, "cancelled": 0}
    assert stats.appointments_by_month == {"03/2025": 1}
    assert "Skipping invalid date" in caplog.text
