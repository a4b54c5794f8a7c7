"""Singleton reference lists: therapy types and practitioner names."""

from collections.abc import Iterable

import structlog

from carestore.domain.keys import ReferenceKey
from carestore.domain.models import TherapyType
from carestore.services.store import KeyValueStore

logger = structlog.get_logger(__name__)


class ReferenceDataService:
    """Reads and replaces the lists stored under the reference keys."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.logger = logger.bind(component="reference_data_service")

    async def therapy_types(self) -> list[TherapyType]:
        """The therapy catalogue; empty when the key has never been written."""
        value = await self.store.get(ReferenceKey.THERAPY_TYPES.value)
        return [TherapyType.model_validate(item) for item in value or []]

    async def practitioners(self) -> list[str]:
        value = await self.store.get(ReferenceKey.PRACTITIONERS.value)
        return [str(name) for name in value or []]

    async def set_therapy_types(self, therapy_types: Iterable[TherapyType]) -> None:
        items = [t.model_dump(mode="json") for t in therapy_types]
        await self.store.set(ReferenceKey.THERAPY_TYPES.value, items)
        self.logger.info("therapy_types_replaced", count=len(items))

    async def set_practitioners(self, names: Iterable[str]) -> None:
        items = list(names)
        await self.store.set(ReferenceKey.PRACTITIONERS.value, items)
        self.logger.info("practitioners_replaced", count=len(items))

    async def therapy_type(self, name: str) -> TherapyType | None:
        return next((t for t in await self.therapy_types() if t.name == name), None)
