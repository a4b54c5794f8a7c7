"""Patient notifications (`notification_<id>`)."""

from __future__ import annotations

from carestore.domain.keys import EntityKind
from carestore.domain.models import Notification
from carestore.services.records import PatientRecordService


class NotificationService(PatientRecordService[Notification]):
    kind = EntityKind.NOTIFICATION
    model = Notification
    event_name = "notification"

    async def mark_read(self, notification_id: str) -> Notification:
        return await self.update(notification_id, {"read": True})

    async def unread_count(self, patient_id: str) -> int:
        return sum(1 for n in await self.list_for_patient(patient_id) if not n.read)
