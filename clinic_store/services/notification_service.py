import logging
from datetime import datetime, timezone
from typing import Optional

from clinic_store.models import Appointment, Notification, NotificationType
from clinic_store.services.collection_codec import NOTIFICATIONS, CollectionCodec

logger = logging.getLogger(__name__)


def _created_at_key(notification: Notification) -> datetime:
    try:
        raw = notification.created_at
        if isinstance(raw, str) and raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        value = datetime.fromisoformat(raw)
    except (TypeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _reminder(user_id: str, appointment: Appointment) -> Notification:
    # Doctors are reminded of the patient, everyone else of the doctor.
    if user_id == appointment.doctor_id:
        counterpart = appointment.patient_name or appointment.doctor_name
    else:
        counterpart = appointment.doctor_name or appointment.patient_name
    return Notification(
        user_id=user_id,
        type=NotificationType.APPOINTMENT_REMINDER,
        title="Appointment Reminder",
        message=f"You have an appointment tomorrow at {appointment.time} with {counterpart}.",
        appointment_id=appointment.id,
    )


class NotificationEngine:
    """Notification records addressed to users, plus the appointment event templates."""

    def __init__(self, codec: CollectionCodec):
        self.codec = codec

    # -------------------------------
    # 📬 QUERIES
    # -------------------------------

    async def list_for_user(self, user_id: str) -> list[Notification]:
        """Most recent first. Equal timestamps keep insertion order."""
        notifications = [n for n in await self.codec.load(NOTIFICATIONS) if n.user_id == user_id]
        notifications.sort(key=_created_at_key, reverse=True)
        return notifications

    async def unread_count(self, user_id: str) -> int:
        return sum(1 for n in await self.list_for_user(user_id) if not n.read)

    # -------------------------------
    # ✏️ MUTATIONS
    # -------------------------------

    async def create(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        appointment_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type),
            title=title,
            message=message,
            appointment_id=appointment_id,
        )
        async with self.codec.mutate(NOTIFICATIONS) as notifications:
            notifications.append(notification)
        logger.info(f"[create] 🔔 {notification.type.value} for user={user_id} appointment={appointment_id}")
        return notification

    async def mark_read(self, notification_id: str) -> bool:
        """Returns True only when a record flipped from unread to read."""
        async with self.codec.mutate(NOTIFICATIONS) as notifications:
            for n in notifications:
                if n.id == notification_id:
                    if n.read:
                        return False
                    n.read = True
                    return True
        logger.debug(f"[mark_read] No notification {notification_id}, nothing to do")
        return False

    async def mark_all_read(self, user_id: str) -> int:
        changed = 0
        async with self.codec.mutate(NOTIFICATIONS) as notifications:
            for n in notifications:
                if n.user_id == user_id and not n.read:
                    n.read = True
                    changed += 1
        logger.info(f"[mark_all_read] {changed} notifications marked read for user={user_id}")
        return changed

    async def delete(self, notification_id: str) -> bool:
        async with self.codec.mutate(NOTIFICATIONS) as notifications:
            before = len(notifications)
            notifications[:] = [n for n in notifications if n.id != notification_id]
            removed = len(notifications) < before
        if removed:
            logger.info(f"[delete] Removed notification {notification_id}")
        return removed

    # -------------------------------
    # 🩺 APPOINTMENT EVENTS
    # -------------------------------

    async def notify_appointment_confirmed(self, patient_id: str, appointment: Appointment) -> Notification:
        return await self.create(
            user_id=patient_id,
            type=NotificationType.APPOINTMENT_CONFIRMED,
            title="Appointment Confirmed",
            message=(
                f"Your appointment with {appointment.doctor_name} has been confirmed "
                f"for {appointment.date} at {appointment.time}."
            ),
            appointment_id=appointment.id,
        )

    async def notify_appointment_cancelled(
        self, patient_id: str, appointment: Appointment, reason: Optional[str] = None
    ) -> Notification:
        message = f"Your appointment with {appointment.doctor_name} has been cancelled."
        if reason and reason.strip():
            message += f" Reason: {reason.strip()}"
        return await self.create(
            user_id=patient_id,
            type=NotificationType.APPOINTMENT_CANCELLED,
            title="Appointment Cancelled",
            message=message,
            appointment_id=appointment.id,
        )

    async def notify_new_appointment(self, doctor_id: str, appointment: Appointment) -> Notification:
        return await self.create(
            user_id=doctor_id,
            type=NotificationType.GENERAL,
            title="New Appointment Booked",
            message=f"{appointment.patient_name} booked an appointment for {appointment.date} at {appointment.time}.",
            appointment_id=appointment.id,
        )

    async def notify_appointment_reminder(self, user_id: str, appointment: Appointment) -> Notification:
        reminder = _reminder(user_id, appointment)
        return await self.create(
            user_id=reminder.user_id,
            type=reminder.type,
            title=reminder.title,
            message=reminder.message,
            appointment_id=reminder.appointment_id,
        )

    async def remind_once(self, user_id: str, appointment: Appointment) -> Optional[Notification]:
        """
        Reminder that is sent at most once per user and appointment.
        The lookup and the append share one critical section, so overlapping runs cannot both send it.
        """
        reminder = _reminder(user_id, appointment)
        async with self.codec.mutate(NOTIFICATIONS) as notifications:
            if any(
                n.user_id == user_id
                and n.appointment_id == appointment.id
                and n.type == NotificationType.APPOINTMENT_REMINDER
                for n in notifications
            ):
                logger.debug(f"[remind_once] Already reminded user={user_id} for {appointment.id}")
                return None
            notifications.append(reminder)
        logger.info(f"[remind_once] 🔔 Reminder for user={user_id} appointment={appointment.id}")
        return reminder
