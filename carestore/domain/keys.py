"""
Typed keys for the flat key-value table.

A record key is an entity prefix followed by an identifier. Building keys
through RecordKey keeps the entity-to-prefix mapping in one place.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Identifier-scoped entities and the prefix each one owns."""

    ACCOUNT = "user_"
    PATIENT = "patient_"
    DOCTOR = "doctor_"
    SESSION = "therapy_session_"
    PROGRESS = "progress_"
    NOTIFICATION = "notification_"

    @property
    def prefix(self) -> str:
        return self.value

    def key(self, record_id: str) -> "RecordKey":
        return RecordKey(kind=self, id=record_id)


class ReferenceKey(str, Enum):
    """Singleton keys holding static lists."""

    THERAPY_TYPES = "therapy_types"
    PRACTITIONERS = "practitioners"


class RecordKey(BaseModel):
    """Key of one identifier-scoped record."""

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    id: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.kind.prefix}{self.id}"
