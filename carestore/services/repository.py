"""
Typed repository binding one entity prefix to one record model.

The repository is the only place that turns record ids into keys and stored
documents into models. It stamps updated_at on every save and implements
patch semantics client-side: read the whole value, merge, write it back.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

import structlog
from pydantic import ValidationError

from carestore.domain.errors import NotFound, StoreError, StoreErrorKind
from carestore.domain.keys import EntityKind
from carestore.domain.models import StoredRecord, utc_now
from carestore.services.store import KeyValueStore

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=StoredRecord)


class Repository(Generic[ModelT]):
    """CRUD over the records stored under one EntityKind prefix."""

    def __init__(self, store: KeyValueStore, kind: EntityKind, model: type[ModelT]) -> None:
        self.store = store
        self.kind = kind
        self.model = model
        self.logger = logger.bind(component="repository", prefix=kind.prefix)

    def key(self, record_id: str) -> str:
        return str(self.kind.key(record_id))

    def _parse(self, key: str, value: Any) -> ModelT:
        try:
            return self.model.model_validate(value)
        except ValidationError as e:
            raise StoreError(
                f"Value under {key!r} does not match {self.model.__name__}",
                e,
                kind=StoreErrorKind.REJECTED,
            ) from e

    async def get(self, record_id: str) -> ModelT | None:
        key = self.key(record_id)
        value = await self.store.get(key)
        if value is None:
            return None
        return self._parse(key, value)

    async def require(self, record_id: str) -> ModelT:
        record = await self.get(record_id)
        if record is None:
            raise NotFound(self.key(record_id))
        return record

    async def list(self) -> list[ModelT]:
        """Return every record under the prefix; malformed values are skipped."""
        records: list[ModelT] = []
        for value in await self.store.scan_by_prefix(self.kind.prefix):
            try:
                records.append(self.model.model_validate(value))
            except ValidationError as e:
                self.logger.warning(
                    "malformed_record_skipped",
                    record_id=value.get("id") if isinstance(value, Mapping) else None,
                    error_count=e.error_count(),
                )
        return records

    async def save(self, record: ModelT) -> ModelT:
        """Write the whole record with a refreshed updated_at and return it."""
        stamped = record.model_copy(update={"updated_at": max(utc_now(), record.created_at)})
        await self.store.set(self.key(stamped.id), stamped.to_document())
        return stamped

    async def merge(self, record_id: str, changes: Mapping[str, Any]) -> ModelT:
        """Apply only the editable fields present in changes; NotFound if absent."""
        existing = await self.require(record_id)
        return await self.save(self.apply(existing, changes))

    def apply(self, record: ModelT, changes: Mapping[str, Any]) -> ModelT:
        allowed = self.model.editable_fields()
        accepted = {k: v for k, v in changes.items() if k in allowed}
        return self.model.model_validate({**record.model_dump(), **accepted})

    async def delete(self, record_id: str) -> None:
        await self.store.delete(self.key(record_id))
