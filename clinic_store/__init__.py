"""Local record store for appointments, notifications and users."""

from clinic_store.exceptions import (
    ClinicStoreError,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ClinicStoreError",
    "InvalidTransitionError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
]
