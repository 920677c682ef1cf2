class ClinicStoreError(Exception):
    """Base class for every error raised by the record store."""


class ValidationError(ClinicStoreError):
    """Malformed or out-of-window input. The caller should ask the user to correct it."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class InvalidTransitionError(ValidationError):
    """Status change not allowed by the transition table."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move appointment from {current!r} to {requested!r}",
            fields=["status"],
        )
        self.current = current
        self.requested = requested


class NotFoundError(ClinicStoreError):
    """An operation referenced an id that is not in the collection."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id!r} not found")
        self.kind = kind
        self.record_id = record_id


class StoreError(ClinicStoreError):
    """The blob store failed to read or write. Nothing was persisted."""
