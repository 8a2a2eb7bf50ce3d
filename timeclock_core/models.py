"""
Data model: users, clock records, locations.

Records travel to the server and into local storage in the same camelCase
shape the backend uses; from_dict/to_dict are the only place that mapping
lives.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Role(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value) -> "Role":
        """Unknown or missing roles fall back to employee."""
        try:
            return cls(value)
        except ValueError:
            return cls.EMPLOYEE


class ClockAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class ClockStatus(str, Enum):
    IN = "in"
    OUT = "out"

    @property
    def next_action(self) -> ClockAction:
        return ClockAction.CLOCK_OUT if self is ClockStatus.IN else ClockAction.CLOCK_IN

    @classmethod
    def after(cls, action: ClockAction) -> "ClockStatus":
        return cls.IN if action is ClockAction.CLOCK_IN else cls.OUT


class SyncState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_date(timestamp_ms: int) -> str:
    """Calendar date (UTC) of an epoch-millisecond timestamp, e.g. 2024-05-01."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date().isoformat()


@dataclass
class User:
    id: str
    role: Role = Role.EMPLOYEE
    name: Optional[str] = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise ValueError("user payload has no id")
        known = {"id", "role", "name", "nickName"}
        return cls(
            id=str(data["id"]),
            role=Role.parse(data.get("role")),
            name=data.get("name") or data.get("nickName"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({"id": self.id, "role": self.role.value})
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    @classmethod
    def from_dict(cls, data) -> Optional["Location"]:
        if not data:
            return None
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=None if data.get("accuracy") is None else float(data["accuracy"]),
        )

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "accuracy": self.accuracy}


@dataclass
class ClockRecord:
    action: ClockAction
    timestamp: int
    user_id: str
    location: Optional[Location] = None
    id: Optional[str] = None                 # None until the server assigns one
    sync_state: SyncState = SyncState.PENDING
    local_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def date(self) -> str:
        return iso_date(self.timestamp)

    @property
    def is_pending(self) -> bool:
        return self.sync_state is SyncState.PENDING

    def create_payload(self) -> dict:
        """Body for POST /clock/records."""
        return {
            "action": self.action.value,
            "timestamp": self.timestamp,
            "date": self.date,
            "location": self.location.to_dict() if self.location else None,
            "userId": self.user_id,
        }

    def to_dict(self) -> dict:
        data = self.create_payload()
        data.update({
            "id": self.id,
            "syncState": self.sync_state.value,
            "localId": self.local_id,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ClockRecord":
        """Build from a server or cached record. Raises ValueError/KeyError on junk."""
        record_id = data.get("id")
        record = cls(
            action=ClockAction(data["action"]),
            timestamp=int(data["timestamp"]),
            user_id=str(data.get("userId", "")),
            location=Location.from_dict(data.get("location")),
            id=None if record_id is None else str(record_id),
            sync_state=SyncState(data.get("syncState", SyncState.CONFIRMED.value)),
        )
        if data.get("localId"):
            record.local_id = data["localId"]
        return record
