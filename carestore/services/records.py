"""
Single-record services for documents that reference a patient.

Sessions, progress entries and notifications have no join; lookups by
patient_id or doctor_id scan the whole prefix and filter in memory, so they
cost O(records under the prefix) rather than O(matches).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

import structlog

from carestore.domain.keys import EntityKind
from carestore.domain.models import StoredRecord
from carestore.services.identifiers import IdFactory, new_id
from carestore.services.repository import Repository
from carestore.services.store import KeyValueStore

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=StoredRecord)


class PatientRecordService(Generic[RecordT]):
    """Create, read, merge-update and filter records of one kind."""

    kind: ClassVar[EntityKind]
    model: ClassVar[type[StoredRecord]]
    event_name: ClassVar[str]

    def __init__(self, store: KeyValueStore, id_factory: IdFactory = new_id) -> None:
        self.repository: Repository[RecordT] = Repository(
            store, self.kind, self.model  # type: ignore[arg-type]
        )
        self.id_factory = id_factory
        self.logger = logger.bind(component=f"{self.event_name}_service")

    async def list(self) -> list[RecordT]:
        return await self.repository.list()

    async def get(self, record_id: str) -> RecordT | None:
        return await self.repository.get(record_id)

    async def list_for_patient(self, patient_id: str) -> list[RecordT]:
        return [r for r in await self.repository.list() if getattr(r, "patient_id") == patient_id]

    async def create(self, data: Mapping[str, Any]) -> RecordT:
        fields = {k: v for k, v in data.items() if k not in ("id", "created_at", "updated_at")}
        record = self.repository.model.model_validate({**fields, "id": self.id_factory()})
        saved = await self.repository.save(record)
        self.logger.info(f"{self.event_name}_created", record_id=saved.id)
        return saved

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> RecordT:
        """Merge changes into the stored record. Raises NotFound when it is absent."""
        updated = await self.repository.merge(record_id, changes)
        self.logger.info(
            f"{self.event_name}_updated", record_id=record_id, fields=sorted(changes)
        )
        return updated
