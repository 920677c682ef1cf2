import logging
from datetime import date
from typing import Optional

from clinic_store.models import Notification
from clinic_store.services.appointment_service import AppointmentRepository
from clinic_store.services.notification_service import NotificationEngine

logger = logging.getLogger(__name__)


async def dispatch_reminders(
    appointments: AppointmentRepository,
    notifications: NotificationEngine,
    today: Optional[date] = None,
) -> list[Notification]:
    """
    Remind patients of tomorrow's confirmed appointments.
    Safe to rerun or overlap: a patient gets one reminder per appointment.
    """
    due = await appointments.due_for_reminder(today)
    sent = []
    for appt in due:
        reminder = await notifications.remind_once(appt.patient_id, appt)
        if reminder is not None:
            sent.append(reminder)

    logger.info(f"[dispatch_reminders] {len(sent)} reminders sent, {len(due)} appointments due")
    return sent
