"""SymptomEntry: one completed analysis, immutable once created."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Tuple

from symptomlog.utils.exceptions import ValidationError

MAX_SUGGESTIONS = 8


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Accept a member or its exact string value; anything else is a ValidationError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(
            f"severity must be one of: {allowed}",
            details=[{"field": "severity", "message": f"got {value!r}"}],
        )


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    value = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class SymptomEntry:
    id: str
    owner_id: str
    symptoms: Tuple[str, ...]
    severity: Severity
    suggestions: Tuple[str, ...]
    timestamp: datetime

    def __post_init__(self) -> None:
        if not self.id or not self.owner_id:
            raise ValueError("entry id and owner_id are required")
        if not 1 <= len(self.suggestions) <= MAX_SUGGESTIONS:
            raise ValueError(f"an entry carries 1..{MAX_SUGGESTIONS} suggestions, got {len(self.suggestions)}")
        if self.timestamp.tzinfo is None:
            raise ValueError("entry timestamp must be timezone-aware")

    @classmethod
    def create(
        cls,
        owner_id: str,
        symptoms: Iterable[str],
        severity: Severity,
        suggestions: Iterable[str],
        timestamp: datetime,
    ) -> "SymptomEntry":
        return cls(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            symptoms=tuple(symptoms),
            severity=Severity.parse(severity),
            suggestions=tuple(suggestions),
            timestamp=timestamp,
        )

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        return (self.timestamp, self.id)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "symptoms": list(self.symptoms),
            "severity": self.severity.value,
            "suggestions": list(self.suggestions),
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "SymptomEntry":
        return cls(
            id=str(doc["id"]),
            owner_id=str(doc["ownerId"]),
            symptoms=tuple(doc["symptoms"]),
            severity=Severity(doc["severity"]),
            suggestions=tuple(doc["suggestions"]),
            timestamp=parse_timestamp(doc["timestamp"]),
        )
