import asyncio

from config import get_config
from logging_setup import setup_logger
from clinic_store.app_factory import create_store
from clinic_store.services.reminder_service import dispatch_reminders


async def run_reminders():
    store = create_store()
    try:
        return await dispatch_reminders(store.appointments, store.notifications)
    finally:
        await store.close()


if __name__ == "__main__":
    """
    Daily job: remind patients of tomorrow's confirmed appointments.
    Schedule it once a day (cron, systemd timer); reruns do not duplicate reminders.
    """
    config = get_config()
    setup_logger(config.LOG_DIR, config.LOG_LEVEL)
    asyncio.run(run_reminders())
