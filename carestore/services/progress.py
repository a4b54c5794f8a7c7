"""Progress entries (`progress_<id>`)."""

from __future__ import annotations

from carestore.domain.keys import EntityKind
from carestore.domain.models import ProgressEntry
from carestore.services.records import PatientRecordService


class ProgressService(PatientRecordService[ProgressEntry]):
    kind = EntityKind.PROGRESS
    model = ProgressEntry
    event_name = "progress"

    async def list_for_patient(self, patient_id: str) -> list[ProgressEntry]:
        """A patient's entries, oldest first."""
        entries = await super().list_for_patient(patient_id)
        return sorted(entries, key=lambda e: (e.date, e.created_at))
