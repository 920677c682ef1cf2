import uuid
from dataclasses import asdict, fields
from datetime import datetime, timezone
from enum import Enum


def new_id() -> str:
    """Random 128-bit id. Safe under rapid successive creation."""
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Record:
    """Mixin for the dataclasses stored as JSON objects inside a collection."""

    @classmethod
    def from_dict(cls, data: dict):
        # Unknown keys come from older/newer writers; drop them instead of failing.
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict:
        return {
            k: (v.value if isinstance(v, Enum) else v)
            for k, v in asdict(self).items()
        }
