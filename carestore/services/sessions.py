"""Therapy sessions (`therapy_session_<id>`)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from carestore.domain.errors import SlotUnavailable
from carestore.domain.keys import EntityKind
from carestore.domain.models import SessionStatus, TherapySession
from carestore.services.identifiers import IdFactory, new_id
from carestore.services.records import PatientRecordService
from carestore.services.scheduling import SchedulingService
from carestore.services.store import KeyValueStore


class SessionService(PatientRecordService[TherapySession]):
    kind = EntityKind.SESSION
    model = TherapySession
    event_name = "session"

    def __init__(
        self,
        store: KeyValueStore,
        id_factory: IdFactory = new_id,
        scheduling: SchedulingService | None = None,
    ) -> None:
        super().__init__(store, id_factory)
        self.scheduling = scheduling or SchedulingService()

    async def list_for_doctor(self, doctor_id: str) -> list[TherapySession]:
        return [s for s in await self.repository.list() if s.doctor_id == doctor_id]

    async def schedule(self, data: Mapping[str, Any]) -> TherapySession:
        """
        Create a session after checking the doctor is free at that time.

        Raises:
            SlotUnavailable: The doctor already has a live session overlapping it.
        """
        candidate = TherapySession.model_validate({**data, "id": "candidate"})
        if candidate.doctor_id is not None:
            booked = await self.list_for_doctor(candidate.doctor_id)
            if self.scheduling.has_conflict(candidate, booked):
                self.logger.info(
                    "session_slot_unavailable",
                    doctor_id=candidate.doctor_id,
                    date=candidate.date,
                    time=candidate.time,
                )
                raise SlotUnavailable(
                    f"Doctor {candidate.doctor_id} is booked at {candidate.date} {candidate.time}"
                )
        return await self.create(data)

    async def cancel(self, session_id: str) -> TherapySession:
        return await self.update(session_id, {"status": SessionStatus.CANCELLED})

    async def complete(self, session_id: str, notes: str | None = None) -> TherapySession:
        changes: dict[str, Any] = {"status": SessionStatus.COMPLETED}
        if notes is not None:
            changes["notes"] = notes
        return await self.update(session_id, changes)
