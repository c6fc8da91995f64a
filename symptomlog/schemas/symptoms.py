# symptomlog/schemas/symptoms.py
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from symptomlog.models.entry import Severity, SymptomEntry, format_timestamp


class AnalyzeRequest(BaseModel):
    """Request model for the analysis endpoint."""

    symptoms: List[str] = Field(..., min_length=1, description="Symptom labels as entered by the user.")
    severity: Severity = Field(..., description="One of: mild, moderate, severe.")


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    suggestions: List[str] = Field(..., min_length=1, max_length=8)
    entry_id: str = Field(..., alias="entryId")


class SymptomEntryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(..., alias="ownerId")
    symptoms: List[str]
    severity: Severity
    suggestions: List[str]
    timestamp: str

    @classmethod
    def from_entry(cls, entry: SymptomEntry) -> "SymptomEntryOut":
        return cls(
            id=entry.id,
            owner_id=entry.owner_id,
            symptoms=list(entry.symptoms),
            severity=entry.severity,
            suggestions=list(entry.suggestions),
            timestamp=format_timestamp(entry.timestamp),
        )


class HistoryResponse(BaseModel):
    entries: List[SymptomEntryOut]
